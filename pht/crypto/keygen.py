"""Dealer-side threshold key generation.

The dealer picks the modulus, builds the secret exponent d with
d = 0 mod lambda and d = 1 mod n, hides it as the constant term of a random
polynomial of degree t-1 over Z_{n*lambda}, and hands party i the value f(i).
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from pht.config import DEFAULT_SETTINGS, Settings

from .arith import crt2, randbelow
from .errors import InsecureKeySize
from .paillier import PrivateKeyShare, PublicKey, ThresholdParams
from .primes import Modulus, generate_modulus
from .rand import ensure_rng

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SharingPolynomial:
    """f(x) = sum(coefficients[i] * x^i) mod modulus."""

    coefficients: Tuple[int, ...] = field(repr=False)
    modulus: int = field(repr=False)

    @classmethod
    def random(cls, secret: int, degree: int, modulus: int, rng: random.Random) -> "SharingPolynomial":
        if degree < 0:
            raise ValueError("degree must be non-negative")
        coeffs = [secret % modulus] + [randbelow(modulus, rng) for _ in range(degree)]
        return cls(tuple(coeffs), modulus)

    @property
    def degree(self) -> int:
        return len(self.coefficients) - 1

    def evaluate(self, x: int) -> int:
        result = 0
        for coef in reversed(self.coefficients):
            result = (result * x + coef) % self.modulus
        return result


def deal_shares(
    modulus: Modulus,
    params: ThresholdParams,
    rng: Optional[random.Random] = None,
) -> Tuple[PublicKey, List[PrivateKeyShare]]:
    """Split the decryption exponent for ``modulus`` among ``params.l`` parties."""
    rng = ensure_rng(rng)
    n, lam = modulus.n, modulus.lam
    pk = PublicKey.from_modulus(n, params)
    d = crt2(0, lam, 1, n)
    poly = SharingPolynomial.random(d, params.t - 1, n * lam, rng)
    shares = [PrivateKeyShare(i, poly.evaluate(i), params, pk.key_id) for i in range(1, params.l + 1)]
    return pk, shares


def generate_keypair(
    bits: int,
    t: int,
    l: int,
    rng: Optional[random.Random] = None,
    settings: Optional[Settings] = None,
) -> Tuple[PublicKey, List[PrivateKeyShare]]:
    """Generate a ``bits``-bit key whose private part is shared t-out-of-l.

    Returns the public key and the l private shares, share i at position i-1.
    """
    params = ThresholdParams(t, l)
    settings = settings or DEFAULT_SETTINGS
    if bits < settings.min_key_bits:
        raise InsecureKeySize(f"{bits}-bit modulus is below the {settings.min_key_bits}-bit floor")
    rng = ensure_rng(rng)

    modulus = generate_modulus(bits, rng, settings)
    logger.info("Generated %d-bit modulus", modulus.bits)
    pk, shares = deal_shares(modulus, params, rng)
    logger.info("Key generation complete (t=%d, l=%d)", params.t, params.l)
    return pk, shares


__all__ = ["SharingPolynomial", "deal_shares", "generate_keypair"]
