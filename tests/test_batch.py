"""
tests/test_batch.py: batch operations, in-process and over a worker pool.
"""

from __future__ import annotations

import random

import pytest

from pht.config import Settings
from pht.crypto.errors import InsufficientShares, PlaintextOutOfRange
from pht.protocol import batch

SEQUENTIAL = Settings(min_key_bits=32)
POOLED = Settings(min_key_bits=32, workers=2)


@pytest.mark.parametrize("settings", [SEQUENTIAL, POOLED], ids=["sequential", "pooled"])
def test_batch_pipeline(key_2_of_3, settings):
    pk, key_shares = key_2_of_3
    plaintexts = [random.Random(i).randrange(0, 2**48) for i in range(12)]

    cts = batch.encrypt_many(pk, plaintexts, rng=random.Random(1), settings=settings)
    assert len(cts) == len(plaintexts)
    assert len({c.value for c in cts}) == len(cts)

    per_party = [batch.share_decrypt_many(pk, key_shares[i], cts, settings=settings) for i in (1, 2)]
    share_sets = [[party[k] for party in per_party] for k in range(len(cts))]
    assert batch.combine_many(pk, share_sets, cts, settings=settings) == plaintexts


def test_encrypt_many_matches_single_encryptions_with_same_source(key_2_of_3):
    """Blinding factors come from the caller's source, so pooling does not change the output."""
    pk, _ = key_2_of_3
    plaintexts = [3, 1, 4, 1, 5]
    a = batch.encrypt_many(pk, plaintexts, rng=random.Random(9), settings=SEQUENTIAL)
    b = batch.encrypt_many(pk, plaintexts, rng=random.Random(9), settings=POOLED)
    assert a == b


def test_encrypt_many_validates_before_work(key_2_of_3):
    pk, _ = key_2_of_3
    with pytest.raises(PlaintextOutOfRange):
        batch.encrypt_many(pk, [1, 2, pk.n], settings=SEQUENTIAL)


def test_combine_many_length_mismatch(key_2_of_3):
    pk, _ = key_2_of_3
    with pytest.raises(ValueError):
        batch.combine_many(pk, [[], []], ciphertexts=[], settings=SEQUENTIAL)


def test_pool_errors_reach_the_caller(key_2_of_3):
    pk, key_shares = key_2_of_3
    cts = batch.encrypt_many(pk, [7, 8], rng=random.Random(2), settings=SEQUENTIAL)
    only_one = [[batch.share_decrypt_many(pk, key_shares[0], [c], settings=SEQUENTIAL)[0]] for c in cts]
    with pytest.raises(InsufficientShares):
        batch.combine_many(pk, only_one, cts, settings=POOLED)


def test_empty_batches(key_2_of_3):
    pk, key_shares = key_2_of_3
    assert batch.encrypt_many(pk, [], settings=POOLED) == []
    assert batch.share_decrypt_many(pk, key_shares[0], [], settings=POOLED) == []
    assert batch.combine_many(pk, [], settings=POOLED) == []
