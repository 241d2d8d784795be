"""
Shared fixtures: small keys generated from seeded random sources so that the
suite is fast and reproducible. Toy moduli are far below the production
safety floor, so every key here is generated with lowered settings.
"""

from __future__ import annotations

import random

import pytest

from pht.config import Settings
from pht.crypto.keygen import generate_keypair
from pht.crypto.threshold import share_combine, share_decrypt

TOY_SETTINGS = Settings(min_key_bits=32, mr_rounds=20)


def _decrypt(pk, key_shares, c, parties=None):
    """Threshold-decrypt ``c`` with the given 1-based party indices (default: the first t)."""
    if parties is None:
        chosen = key_shares[: pk.params.t]
    else:
        chosen = [key_shares[i - 1] for i in parties]
    return share_combine(pk, [share_decrypt(pk, ks, c) for ks in chosen], c)


@pytest.fixture(scope="session")
def toy_settings():
    return TOY_SETTINGS


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def decrypt():
    return _decrypt


@pytest.fixture(scope="session")
def key_1_of_1():
    return generate_keypair(64, 1, 1, rng=random.Random(11), settings=TOY_SETTINGS)


@pytest.fixture(scope="session")
def key_2_of_3():
    return generate_keypair(64, 2, 3, rng=random.Random(23), settings=TOY_SETTINGS)


@pytest.fixture(scope="session")
def key_3_of_5():
    return generate_keypair(128, 3, 5, rng=random.Random(35), settings=TOY_SETTINGS)


@pytest.fixture(scope="session")
def other_key_2_of_3():
    return generate_keypair(64, 2, 3, rng=random.Random(99), settings=TOY_SETTINGS)
