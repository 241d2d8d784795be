"""Batch encryption, partial decryption and combination.

Items are independent, so with ``settings.workers > 1`` they are spread over
a process pool; results always come back in input order. Blinding factors
are drawn up front from the caller's random source, so the workers only do
exponentiations and never sample randomness themselves.
"""

from __future__ import annotations

import logging
import random
from concurrent.futures import ProcessPoolExecutor
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

from pht.config import DEFAULT_SETTINGS, Settings
from pht.crypto import paillier, threshold
from pht.crypto.arith import random_unit
from pht.crypto.errors import PlaintextOutOfRange
from pht.crypto.paillier import Ciphertext, DecryptionShare, PrivateKeyShare, PublicKey
from pht.crypto.rand import ensure_rng

logger = logging.getLogger(__name__)


def _run(fn: Callable[[Tuple], Any], jobs: List[Tuple], settings: Optional[Settings]) -> List[Any]:
    settings = settings or DEFAULT_SETTINGS
    if settings.workers == 1 or len(jobs) < 2:
        return [fn(job) for job in jobs]
    workers = min(settings.workers, len(jobs))
    chunksize = max(1, len(jobs) // (workers * 4))
    logger.debug("running %d jobs on %d workers (chunksize %d)", len(jobs), workers, chunksize)
    with ProcessPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(fn, jobs, chunksize=chunksize))


def _encrypt_job(job: Tuple[PublicKey, int, int]) -> Ciphertext:
    pk, m, r = job
    return paillier.encrypt(pk, m, r=r)


def _share_decrypt_job(job: Tuple[PublicKey, PrivateKeyShare, Ciphertext]) -> DecryptionShare:
    return threshold.share_decrypt(*job)


def _combine_job(job: Tuple[PublicKey, List[DecryptionShare], Optional[Ciphertext]]) -> int:
    return threshold.share_combine(*job)


def encrypt_many(
    pk: PublicKey,
    plaintexts: Iterable[int],
    rng: Optional[random.Random] = None,
    settings: Optional[Settings] = None,
) -> List[Ciphertext]:
    ms = list(plaintexts)
    for m in ms:
        if not 0 <= m < pk.n:
            raise PlaintextOutOfRange("message out of range")
    rng = ensure_rng(rng)
    jobs = [(pk, m, random_unit(pk.n, rng)) for m in ms]
    return _run(_encrypt_job, jobs, settings)


def share_decrypt_many(
    pk: PublicKey,
    key_share: PrivateKeyShare,
    ciphertexts: Iterable[Ciphertext],
    settings: Optional[Settings] = None,
) -> List[DecryptionShare]:
    """One party's decryption shares for a list of ciphertexts."""
    jobs = [(pk, key_share, c) for c in ciphertexts]
    return _run(_share_decrypt_job, jobs, settings)


def combine_many(
    pk: PublicKey,
    share_sets: Iterable[Iterable[DecryptionShare]],
    ciphertexts: Optional[Sequence[Ciphertext]] = None,
    settings: Optional[Settings] = None,
) -> List[int]:
    """Combine one share set per ciphertext; ``ciphertexts`` lines up with ``share_sets``."""
    sets = [list(s) for s in share_sets]
    if ciphertexts is None:
        cts: List[Optional[Ciphertext]] = [None] * len(sets)
    else:
        cts = list(ciphertexts)
        if len(cts) != len(sets):
            raise ValueError(f"{len(sets)} share sets for {len(cts)} ciphertexts")
    jobs = [(pk, s, c) for s, c in zip(sets, cts)]
    return _run(_combine_job, jobs, settings)


__all__ = ["encrypt_many", "share_decrypt_many", "combine_many"]
