"""Modular arithmetic over Python ints, backed by gmpy2.

Every helper takes its modulus explicitly and returns a plain ``int``.
"""

from __future__ import annotations

import random

import gmpy2

from .errors import NotInvertible


def gcd(a: int, b: int) -> int:
    return int(gmpy2.gcd(a, b))


def lcm(a: int, b: int) -> int:
    return a // gcd(a, b) * b


def inv_mod(a: int, modulus: int) -> int:
    """Modular inverse of ``a``; raises NotInvertible for non-units."""
    if modulus < 1:
        raise ValueError("modulus must be positive")
    try:
        return int(gmpy2.invert(a, modulus))
    except ZeroDivisionError as exc:
        raise NotInvertible(f"{a} has no inverse modulo a {modulus.bit_length()}-bit modulus") from exc


def pow_mod(base: int, exp: int, modulus: int) -> int:
    """``base ** exp mod modulus`` for exponents of either sign."""
    if modulus < 1:
        raise ValueError("modulus must be positive")
    if exp < 0:
        base = inv_mod(base, modulus)
        exp = -exp
    return int(gmpy2.powmod(base, exp, modulus))


def crt2(a1: int, m1: int, a2: int, m2: int) -> int:
    """The x in [0, m1*m2) with x = a1 mod m1 and x = a2 mod m2 (coprime moduli)."""
    if gcd(m1, m2) != 1:
        raise NotInvertible("CRT moduli must be coprime")
    m = m1 * m2
    x = a1 * m2 * inv_mod(m2, m1) + a2 * m1 * inv_mod(m1, m2)
    return x % m


def L(u: int, n: int) -> int:
    """Paillier's L function; u must be 1 mod n."""
    q, r = divmod(u - 1, n)
    if r != 0:
        raise ValueError("L is only defined for u = 1 mod n")
    return q


def randbelow(bound: int, rng: random.Random) -> int:
    """Uniform integer in [0, bound), by rejection sampling on bit strings."""
    if bound < 1:
        raise ValueError("bound must be positive")
    k = bound.bit_length()
    while True:
        r = rng.getrandbits(k)
        if r < bound:
            return r


def random_unit(n: int, rng: random.Random) -> int:
    """Uniform element of Z_n^*."""
    if n < 2:
        raise ValueError("modulus must be at least 2")
    while True:
        r = randbelow(n, rng)
        if r and gcd(r, n) == 1:
            return r


__all__ = ["gcd", "lcm", "inv_mod", "pow_mod", "crt2", "L", "randbelow", "random_unit"]
