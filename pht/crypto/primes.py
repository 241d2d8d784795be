"""Safe primes and Paillier moduli.

A safe prime is a prime p = 2q' + 1 with q' prime. Candidates are drawn
fresh from the caller's random source, sieved against a primorial, given a
single cheap Miller-Rabin round each, and only then the full test. The
search can be spread over worker processes; the first primes to come back
are used and the remaining tasks are cancelled.
"""

from __future__ import annotations

import logging
import random
from concurrent.futures import FIRST_COMPLETED, ProcessPoolExecutor, wait
from dataclasses import dataclass
from typing import List, Optional

from pht.config import DEFAULT_SETTINGS, Settings

from .arith import gcd, inv_mod, lcm, pow_mod, randbelow
from .errors import DegenerateModulus, InsecureKeySize, NonInvertibleLambda
from .rand import child_seed, ensure_rng, rng_from_seed

logger = logging.getLogger(__name__)

# below this a modulus has too few safe-prime factors of the required shape
MIN_MODULUS_BITS = 32


def _small_primes(limit: int) -> List[int]:
    sieve = bytearray([1]) * limit
    sieve[0:2] = b"\x00\x00"
    for i in range(2, int(limit**0.5) + 1):
        if sieve[i]:
            sieve[i * i :: i] = bytearray(len(sieve[i * i :: i]))
    return [i for i, flag in enumerate(sieve) if flag]


_SMALL_PRIMES = _small_primes(2000)
_SMALL_PRIMORIAL = 1
for _p in _SMALL_PRIMES:
    _SMALL_PRIMORIAL *= _p
del _p


def _miller_rabin(n: int, rounds: int, rng: random.Random) -> bool:
    # n odd and > 3
    d = n - 1
    s = 0
    while d % 2 == 0:
        d //= 2
        s += 1

    def check(a: int) -> bool:
        x = pow_mod(a, d, n)
        if x == 1 or x == n - 1:
            return True
        for _ in range(s - 1):
            x = pow_mod(x, 2, n)
            if x == n - 1:
                return True
        return False

    for _ in range(rounds):
        if not check(randbelow(n - 3, rng) + 2):
            return False
    return True


def is_probable_prime(n: int, rounds: int = 40, rng: Optional[random.Random] = None) -> bool:
    """Trial division, then Miller-Rabin with ``rounds`` random bases."""
    if n < 2:
        return False
    for p in _SMALL_PRIMES:
        if n == p:
            return True
        if n % p == 0:
            return False
    return _miller_rabin(n, rounds, ensure_rng(rng))


def is_safe_prime(p: int, rounds: int = 40, rng: Optional[random.Random] = None) -> bool:
    if p < 5 or p % 2 == 0:
        return False
    rng = ensure_rng(rng)
    return is_probable_prime((p - 1) // 2, rounds, rng) and is_probable_prime(p, rounds, rng)


def _search_safe_prime(bits: int, rng: random.Random, rounds: int, budget: int) -> Optional[int]:
    """Try up to ``budget`` candidates for a ``bits``-bit safe prime."""
    qbits = bits - 1
    # top two bits set so that the product of two such primes has exactly 2*bits bits
    top = 3 << (qbits - 2)
    for _ in range(budget):
        q = rng.getrandbits(qbits) | top | 1
        p = 2 * q + 1
        if gcd(p * q, _SMALL_PRIMORIAL) != 1:
            continue
        if not (_miller_rabin(q, 1, rng) and _miller_rabin(p, 1, rng)):
            continue
        if _miller_rabin(q, rounds, rng) and _miller_rabin(p, rounds, rng):
            return p
    return None


def _search_task(bits: int, seed: Optional[int], rounds: int, budget: int) -> Optional[int]:
    return _search_safe_prime(bits, rng_from_seed(seed), rounds, budget)


def find_safe_primes(
    bits: int,
    count: int,
    rng: Optional[random.Random] = None,
    settings: Optional[Settings] = None,
) -> List[int]:
    """Return the first ``count`` ``bits``-bit safe primes found, in discovery order.

    The primes are not guaranteed to be distinct; callers that need distinct
    values check for themselves.
    """
    if bits < MIN_MODULUS_BITS // 2:
        raise InsecureKeySize(f"safe primes need at least {MIN_MODULUS_BITS // 2} bits, got {bits}")
    if count < 1:
        raise ValueError("count must be positive")
    settings = settings or DEFAULT_SETTINGS
    rng = ensure_rng(rng)
    found: List[int] = []
    tasks = 0

    if settings.workers == 1:
        while len(found) < count:
            tasks += 1
            p = _search_safe_prime(bits, rng, settings.mr_rounds, settings.search_budget)
            if p is not None:
                found.append(p)
        logger.debug("found %d safe primes of %d bits after %d search tasks", count, bits, tasks)
        return found

    pool = ProcessPoolExecutor(max_workers=settings.workers)
    try:

        def submit():
            return pool.submit(_search_task, bits, child_seed(rng), settings.mr_rounds, settings.search_budget)

        pending = {submit() for _ in range(settings.workers)}
        tasks = len(pending)
        while len(found) < count:
            done, pending = wait(pending, return_when=FIRST_COMPLETED)
            for fut in done:
                p = fut.result()
                if p is not None and len(found) < count:
                    found.append(p)
            # keep every worker busy until enough primes are in
            for _ in range(min(len(done), count - len(found))):
                pending.add(submit())
                tasks += 1
            if len(found) < count and not pending:
                pending.add(submit())
                tasks += 1
    finally:
        pool.shutdown(wait=True, cancel_futures=True)
    logger.debug(
        "found %d safe primes of %d bits after %d search tasks on %d workers",
        count,
        bits,
        tasks,
        settings.workers,
    )
    return found


@dataclass(frozen=True)
class Modulus:
    p: int
    q: int
    n: int
    lam: int
    mu: int

    @property
    def bits(self) -> int:
        return self.n.bit_length()


def check_prime_gap(p: int, q: int, bits: int, margin: int) -> None:
    """Raise DegenerateModulus if p and q are equal or too close to each other."""
    if p == q:
        raise DegenerateModulus("p and q are equal")
    gap_bits = bits // 2 - margin
    if gap_bits > 0 and abs(p - q) <= 1 << gap_bits:
        raise DegenerateModulus(f"|p - q| does not exceed 2^{gap_bits}")


def modulus_from_primes(p: int, q: int) -> Modulus:
    n = p * q
    lam = lcm(p - 1, q - 1)
    if gcd(lam, n) != 1:
        raise NonInvertibleLambda("gcd(lambda, n) != 1; modulus generation is broken")
    return Modulus(p=p, q=q, n=n, lam=lam, mu=inv_mod(lam, n))


def generate_modulus(
    bits: int,
    rng: Optional[random.Random] = None,
    settings: Optional[Settings] = None,
) -> Modulus:
    """Generate n = p*q of ``bits`` bits from two safe primes of ``bits/2`` bits."""
    if bits < MIN_MODULUS_BITS or bits % 2:
        raise InsecureKeySize(f"modulus size must be even and at least {MIN_MODULUS_BITS} bits, got {bits}")
    settings = settings or DEFAULT_SETTINGS
    rng = ensure_rng(rng)
    last_error: Optional[DegenerateModulus] = None
    for attempt in range(1, settings.max_modulus_attempts + 1):
        p, q = find_safe_primes(bits // 2, 2, rng, settings)
        try:
            check_prime_gap(p, q, bits, settings.prime_gap_margin)
        except DegenerateModulus as exc:
            logger.debug("modulus attempt %d rejected: %s", attempt, exc)
            last_error = exc
            continue
        return modulus_from_primes(p, q)
    assert last_error is not None
    raise last_error


__all__ = [
    "MIN_MODULUS_BITS",
    "Modulus",
    "is_probable_prime",
    "is_safe_prime",
    "find_safe_primes",
    "check_prime_gap",
    "modulus_from_primes",
    "generate_modulus",
]
