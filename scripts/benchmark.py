#!/usr/bin/env python3
"""Threshold Paillier timing benchmark.

One run, for a given modulus size and (t, l):
- Dealer: safe-prime modulus + sharing polynomial + l private shares;
- Client: encrypt a batch of plaintexts, add them homomorphically;
- Parties: each of t parties computes its decryption shares for the batch;
- Combiner: Lagrange combination of t shares per ciphertext, checked against
  the expected plaintexts.

Inputs are read from stdin (empty line = default), so the report script can
drive it non-interactively. A JSON result block is printed at the end.
"""

from __future__ import annotations

import json
import logging
import secrets
import sys
import time
from pathlib import Path
from typing import Dict, List

import numpy as np

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from pht.config import Settings
from pht.crypto import paillier, threshold
from pht.crypto.keygen import generate_keypair
from pht.protocol import batch


def _ms(sec: float) -> float:
    return sec * 1000.0


def _prompt_int(msg: str, default: int) -> int:
    s = input(msg).strip()
    return default if s == "" else int(s)


def prompt_inputs() -> tuple[int, int, int, int, int]:
    bits = _prompt_int("Modulus size in bits (default 1024): ", 1024)
    t = _prompt_int("Threshold t (default 2): ", 2)
    l = _prompt_int("Party count l (default 3): ", 3)
    count = _prompt_int("Plaintexts per batch (default 32): ", 32)
    workers = _prompt_int("Worker processes (default 1): ", 1)
    return bits, t, l, count, workers


def _stats(samples: List[float]) -> Dict[str, float]:
    arr = np.asarray(samples, dtype=np.float64)
    return {
        "mean_ms": float(np.mean(arr) * 1000.0),
        "median_ms": float(np.median(arr) * 1000.0),
        "std_ms": float(np.std(arr) * 1000.0),
        "total_ms": float(np.sum(arr) * 1000.0),
    }


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    bits, t, l, count, workers = prompt_inputs()
    if count < 1:
        raise ValueError("batch must contain at least one plaintext")
    settings = Settings(min_key_bits=min(bits, 512), workers=workers)

    # ===== Dealer =====
    t0 = time.perf_counter()
    pk, key_shares = generate_keypair(bits, t, l, settings=settings)
    t_keygen = time.perf_counter() - t0
    print(f"[dealer] key generation: {_ms(t_keygen):.2f} ms | n={pk.bits} bit, t={t}, l={l}")

    # ===== Client =====
    plaintexts = [secrets.randbelow(1 << 32) for _ in range(count)]
    enc_times = []
    ciphertexts = []
    for m in plaintexts:
        t0 = time.perf_counter()
        ciphertexts.append(paillier.encrypt(pk, m))
        enc_times.append(time.perf_counter() - t0)
    print(f"[client] encrypt x{count}: {_ms(sum(enc_times)):.2f} ms")

    t0 = time.perf_counter()
    batch_cts = batch.encrypt_many(pk, plaintexts, settings=settings)
    t_batch_enc = time.perf_counter() - t0
    print(f"[client] encrypt_many x{count} on {workers} worker(s): {_ms(t_batch_enc):.2f} ms")

    t0 = time.perf_counter()
    total_ct = paillier.sum_ciphertexts(pk, ciphertexts)
    t_hom_add = time.perf_counter() - t0
    print(f"[client] homomorphic sum of {count} ciphertexts: {_ms(t_hom_add):.2f} ms")

    # ===== Parties =====
    parties = key_shares[:t]
    share_times = []
    per_party = []
    for ks in parties:
        t0 = time.perf_counter()
        per_party.append(batch.share_decrypt_many(pk, ks, ciphertexts, settings=settings))
        share_times.append(time.perf_counter() - t0)
    print(f"[parties] {t} parties x {count} decryption shares: {_ms(sum(share_times)):.2f} ms")

    # ===== Combiner =====
    share_sets = [[party[k] for party in per_party] for k in range(count)]
    combine_times = []
    recovered = []
    for shares, c in zip(share_sets, ciphertexts):
        t0 = time.perf_counter()
        recovered.append(threshold.share_combine(pk, shares, c))
        combine_times.append(time.perf_counter() - t0)
    print(f"[combiner] combine x{count}: {_ms(sum(combine_times)):.2f} ms")

    sum_shares = [threshold.share_decrypt(pk, ks, total_ct) for ks in parties]
    recovered_sum = threshold.share_combine(pk, sum_shares, total_ct)

    batch_ok = batch.combine_many(
        pk,
        [[threshold.share_decrypt(pk, ks, c) for ks in parties] for c in batch_cts],
        batch_cts,
        settings=settings,
    ) == plaintexts
    success = recovered == plaintexts and recovered_sum == sum(plaintexts) % pk.n and batch_ok
    print(f"[check] round trip ok: {recovered == plaintexts} | homomorphic sum ok: {recovered_sum == sum(plaintexts) % pk.n}")

    result = {
        "bits": pk.bits,
        "t": t,
        "l": l,
        "batch": count,
        "workers": workers,
        "success": success,
        "timings_sec": {
            "keygen": t_keygen,
            "encrypt_many": t_batch_enc,
            "hom_sum": t_hom_add,
        },
        "encrypt": _stats(enc_times),
        "share_decrypt_per_party": _stats(share_times),
        "combine": _stats(combine_times),
    }

    print("\n--- JSON result ---")
    print(json.dumps(result, indent=2))


if __name__ == "__main__":
    main()
