"""
tests/test_paillier.py: encryption and the homomorphic operations.
"""

from __future__ import annotations

import random

import pytest

from pht.crypto import paillier
from pht.crypto.errors import NotInvertible, PlaintextOutOfRange, PublicKeyMismatch
from pht.crypto.paillier import Ciphertext


def test_encrypt_round_trip(key_2_of_3, decrypt, rng):
    pk, shares = key_2_of_3
    for m in (0, 1, 42, 2**40 + 7, pk.n - 1):
        c = paillier.encrypt(pk, m, rng=rng)
        assert 0 < c.value < pk.n_squared
        assert c.key_id == pk.key_id
        assert decrypt(pk, shares, c) == m


@pytest.mark.parametrize("offset", [0, 1, 10**6])
def test_plaintext_out_of_range(key_2_of_3, offset):
    pk, _ = key_2_of_3
    with pytest.raises(PlaintextOutOfRange):
        paillier.encrypt(pk, pk.n + offset)


def test_negative_plaintext_out_of_range(key_2_of_3):
    pk, _ = key_2_of_3
    with pytest.raises(PlaintextOutOfRange):
        paillier.encrypt(pk, -1)


def test_explicit_blinding_factor_is_deterministic(key_2_of_3):
    pk, _ = key_2_of_3
    assert paillier.encrypt(pk, 5, r=7) == paillier.encrypt(pk, 5, r=7)
    with pytest.raises(NotInvertible):
        paillier.encrypt(pk, 5, r=0)
    with pytest.raises(NotInvertible):
        paillier.encrypt(pk, 5, r=pk.n)


def test_repeated_encryption_is_randomized(key_2_of_3):
    """Same key, same plaintext: every ciphertext should differ."""
    pk, _ = key_2_of_3
    rng = random.Random(77)
    values = {paillier.encrypt(pk, 42, rng=rng).value for _ in range(200)}
    assert len(values) == 200


def test_add(key_2_of_3, decrypt, rng):
    pk, shares = key_2_of_3
    m1, m2 = 1234567, 7654321
    c = paillier.add(pk, paillier.encrypt(pk, m1, rng=rng), paillier.encrypt(pk, m2, rng=rng))
    assert decrypt(pk, shares, c) == m1 + m2


def test_add_wraps_modulo_n(key_2_of_3, decrypt, rng):
    pk, shares = key_2_of_3
    m1, m2 = pk.n - 3, 10
    c = paillier.add(pk, paillier.encrypt(pk, m1, rng=rng), paillier.encrypt(pk, m2, rng=rng))
    assert decrypt(pk, shares, c) == (m1 + m2) % pk.n == 7


def test_scalar_mul(key_2_of_3, decrypt, rng):
    pk, shares = key_2_of_3
    c = paillier.encrypt(pk, 1001, rng=rng)
    assert decrypt(pk, shares, paillier.scalar_mul(pk, c, 7)) == 7007
    assert decrypt(pk, shares, paillier.scalar_mul(pk, c, 0)) == 0
    assert decrypt(pk, shares, paillier.scalar_mul(pk, c, -1)) == pk.n - 1001


def test_add_plain(key_2_of_3, decrypt, rng):
    pk, shares = key_2_of_3
    c = paillier.encrypt(pk, 500, rng=rng)
    assert decrypt(pk, shares, paillier.add_plain(pk, c, 25)) == 525
    assert decrypt(pk, shares, paillier.add_plain(pk, c, -600)) == pk.n - 100


def test_rerandomize(key_2_of_3, decrypt, rng):
    pk, shares = key_2_of_3
    c = paillier.encrypt(pk, 99, rng=rng)
    c2 = paillier.rerandomize(pk, c, rng=rng)
    assert c2 != c
    assert decrypt(pk, shares, c2) == 99


def test_sum_ciphertexts(key_2_of_3, decrypt, rng):
    pk, shares = key_2_of_3
    ms = list(range(1, 21))
    total = paillier.sum_ciphertexts(pk, [paillier.encrypt(pk, m, rng=rng) for m in ms])
    assert decrypt(pk, shares, total) == sum(ms)
    with pytest.raises(ValueError):
        paillier.sum_ciphertexts(pk, [])


def test_operations_reject_foreign_ciphertexts(key_2_of_3, other_key_2_of_3, rng):
    pk, _ = key_2_of_3
    other_pk, _ = other_key_2_of_3
    mine = paillier.encrypt(pk, 1, rng=rng)
    theirs = paillier.encrypt(other_pk, 1, rng=rng)
    with pytest.raises(PublicKeyMismatch):
        paillier.add(pk, mine, theirs)
    with pytest.raises(PublicKeyMismatch):
        paillier.scalar_mul(pk, theirs, 3)
    with pytest.raises(PublicKeyMismatch):
        paillier.add_plain(pk, theirs, 3)
    with pytest.raises(PublicKeyMismatch):
        paillier.sum_ciphertexts(pk, [mine, theirs])


def test_out_of_range_ciphertext_rejected(key_2_of_3):
    pk, _ = key_2_of_3
    with pytest.raises(ValueError):
        paillier.scalar_mul(pk, Ciphertext(pk.n_squared, pk.key_id), 2)
    with pytest.raises(ValueError):
        paillier.add(pk, Ciphertext(0, pk.key_id), Ciphertext(1, pk.key_id))


def test_ciphertext_fingerprint(key_2_of_3, rng):
    pk, _ = key_2_of_3
    c = paillier.encrypt(pk, 3, rng=rng)
    assert c.fingerprint == Ciphertext(c.value, c.key_id).fingerprint
    assert c.fingerprint != paillier.rerandomize(pk, c, rng=rng).fingerprint
