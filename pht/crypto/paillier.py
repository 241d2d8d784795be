"""Threshold Paillier values and the homomorphic ciphertext engine.

Keys, shares and ciphertexts are immutable values. Every ciphertext and
private share records the id of the public key it belongs to, and every
operation that combines them checks that id, so values from different keys
cannot be mixed by accident.

The engine never touches private material: encryption and the homomorphic
operations only need the public key.
"""

from __future__ import annotations

import hashlib
import math
import random
from dataclasses import dataclass, field
from functools import cached_property, reduce
from typing import Any, Dict, Iterable, Optional

from .arith import gcd, pow_mod, random_unit
from .errors import (
    InvalidThresholdConfig,
    NotInvertible,
    PlaintextOutOfRange,
    PublicKeyMismatch,
    ShareIndexOutOfRange,
)
from .rand import ensure_rng


def _b(x: int) -> bytes:
    return x.to_bytes((x.bit_length() + 7) // 8, "big")


def _digest(tag: bytes, *parts: bytes) -> str:
    h = hashlib.sha256(tag)
    for part in parts:
        h.update(len(part).to_bytes(4, "big"))
        h.update(part)
    return h.hexdigest()


def _hex(x: int) -> str:
    return format(x, "x")


def _unhex(s: str) -> int:
    return int(s, 16)


@dataclass(frozen=True)
class ThresholdParams:
    """Any t of the l parties can decrypt together."""

    t: int
    l: int

    def __post_init__(self) -> None:
        if self.l < 1:
            raise InvalidThresholdConfig(f"party count must be at least 1, got l={self.l}")
        if not 1 <= self.t <= self.l:
            raise InvalidThresholdConfig(f"threshold must satisfy 1 <= t <= l, got t={self.t}, l={self.l}")


@dataclass(frozen=True)
class PublicKey:
    n: int
    n_squared: int
    g: int
    # 4 * delta^2 mod n, the scaling left on L(c') after combination
    theta: int
    # l!
    delta: int
    params: ThresholdParams

    @classmethod
    def from_modulus(cls, n: int, params: ThresholdParams) -> "PublicKey":
        delta = math.factorial(params.l)
        if gcd(delta, n) != 1:
            raise InvalidThresholdConfig(f"l={params.l} parties is too many for a {n.bit_length()}-bit modulus")
        return cls(
            n=n,
            n_squared=n * n,
            g=n + 1,
            theta=4 * delta * delta % n,
            delta=delta,
            params=params,
        )

    @cached_property
    def key_id(self) -> str:
        return _digest(b"pht/public-key", _b(self.n), _b(self.params.t), _b(self.params.l))

    @property
    def bits(self) -> int:
        return self.n.bit_length()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "n": _hex(self.n),
            "g": _hex(self.g),
            "theta": _hex(self.theta),
            "delta": _hex(self.delta),
            "t": self.params.t,
            "l": self.params.l,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PublicKey":
        pk = cls.from_modulus(_unhex(data["n"]), ThresholdParams(int(data["t"]), int(data["l"])))
        for name in ("g", "theta", "delta"):
            if name in data and _unhex(data[name]) != getattr(pk, name):
                raise ValueError(f"public key field {name!r} is inconsistent with n and (t, l)")
        return pk


@dataclass(frozen=True)
class PrivateKeyShare:
    """One party's evaluation of the sharing polynomial."""

    index: int
    value: int = field(repr=False)
    params: ThresholdParams
    key_id: str

    def __post_init__(self) -> None:
        if not 1 <= self.index <= self.params.l:
            raise ShareIndexOutOfRange(f"share index {self.index} outside [1, {self.params.l}]")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "value": _hex(self.value),
            "t": self.params.t,
            "l": self.params.l,
            "key_id": self.key_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PrivateKeyShare":
        return cls(
            index=int(data["index"]),
            value=_unhex(data["value"]),
            params=ThresholdParams(int(data["t"]), int(data["l"])),
            key_id=str(data["key_id"]),
        )


@dataclass(frozen=True)
class Ciphertext:
    value: int
    key_id: str

    @cached_property
    def fingerprint(self) -> str:
        """Identity of this ciphertext, carried by the decryption shares computed from it."""
        return _digest(b"pht/ciphertext", self.key_id.encode("ascii"), _b(self.value))

    def to_dict(self) -> Dict[str, Any]:
        return {"value": _hex(self.value), "key_id": self.key_id}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Ciphertext":
        return cls(value=_unhex(data["value"]), key_id=str(data["key_id"]))


@dataclass(frozen=True)
class DecryptionShare:
    index: int
    value: int
    ciphertext_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {"index": self.index, "value": _hex(self.value), "ciphertext_id": self.ciphertext_id}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DecryptionShare":
        return cls(index=int(data["index"]), value=_unhex(data["value"]), ciphertext_id=str(data["ciphertext_id"]))


def check_ciphertext(pk: PublicKey, c: Ciphertext) -> None:
    if c.key_id != pk.key_id:
        raise PublicKeyMismatch("ciphertext was produced under a different public key")
    if not 0 < c.value < pk.n_squared:
        raise ValueError("ciphertext out of range")


def encrypt(
    pk: PublicKey,
    m: int,
    rng: Optional[random.Random] = None,
    r: Optional[int] = None,
) -> Ciphertext:
    """Encrypt m, 0 <= m < n. ``r`` overrides the random blinding factor."""
    if not 0 <= m < pk.n:
        raise PlaintextOutOfRange("message out of range")
    if r is None:
        r = random_unit(pk.n, ensure_rng(rng))
    elif not 0 < r < pk.n or gcd(r, pk.n) != 1:
        raise NotInvertible("blinding factor must be a unit modulo n")
    n2 = pk.n_squared
    # g = n + 1, so g^m = 1 + m*n mod n^2
    gm = (1 + m * pk.n) % n2
    return Ciphertext((gm * pow_mod(r, pk.n, n2)) % n2, pk.key_id)


def add(pk: PublicKey, c1: Ciphertext, c2: Ciphertext) -> Ciphertext:
    """E(m1) * E(m2) = E(m1 + m2 mod n)"""
    check_ciphertext(pk, c1)
    check_ciphertext(pk, c2)
    return Ciphertext((c1.value * c2.value) % pk.n_squared, pk.key_id)


def add_plain(pk: PublicKey, c: Ciphertext, k: int) -> Ciphertext:
    """E(m) * g^k = E(m + k mod n); k may be negative."""
    check_ciphertext(pk, c)
    gk = (1 + (k % pk.n) * pk.n) % pk.n_squared
    return Ciphertext((c.value * gk) % pk.n_squared, pk.key_id)


def scalar_mul(pk: PublicKey, c: Ciphertext, k: int) -> Ciphertext:
    """E(m)^k = E(k*m mod n); k may be negative."""
    check_ciphertext(pk, c)
    return Ciphertext(pow_mod(c.value, k % pk.n, pk.n_squared), pk.key_id)


def rerandomize(pk: PublicKey, c: Ciphertext, rng: Optional[random.Random] = None) -> Ciphertext:
    """Fresh-looking ciphertext of the same plaintext."""
    check_ciphertext(pk, c)
    r = random_unit(pk.n, ensure_rng(rng))
    return Ciphertext((c.value * pow_mod(r, pk.n, pk.n_squared)) % pk.n_squared, pk.key_id)


def sum_ciphertexts(pk: PublicKey, ciphertexts: Iterable[Ciphertext]) -> Ciphertext:
    items = list(ciphertexts)
    if not items:
        raise ValueError("nothing to sum")
    for c in items:
        check_ciphertext(pk, c)
    value = reduce(lambda acc, c: (acc * c.value) % pk.n_squared, items, 1)
    return Ciphertext(value, pk.key_id)


__all__ = [
    "ThresholdParams",
    "PublicKey",
    "PrivateKeyShare",
    "Ciphertext",
    "DecryptionShare",
    "check_ciphertext",
    "encrypt",
    "add",
    "add_plain",
    "scalar_mul",
    "rerandomize",
    "sum_ciphertexts",
]
