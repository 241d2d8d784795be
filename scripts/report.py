#!/usr/bin/env python3
"""Run the benchmark over a grid of key sizes and party counts, then tabulate and plot.

Outputs:
- artifacts/benchmark_pht.xlsx (sheet per experiment)
- artifacts/fig_keysize.png / artifacts/fig_parties.png
"""

from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path
from typing import Dict, List

from openpyxl import Workbook
from openpyxl.utils import get_column_letter

ROOT = Path(__file__).resolve().parents[1]
ART = ROOT / "artifacts"
ART.mkdir(parents=True, exist_ok=True)

# Avoid matplotlib writing cache under a non-writable home directory.
os.environ.setdefault("MPLCONFIGDIR", str(ART / ".mplconfig"))

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt

KEY_SIZES = [512, 1024, 1536, 2048]
PARTY_COUNTS = [(2, 3), (3, 5), (5, 7), (7, 10)]
FIXED_BITS = 1024
BATCH = 16
RUNS = 3


def _parse_last_json(stdout: str) -> Dict:
    # Benchmark prints a JSON object at the end. Extract the last complete {...} block.
    marker = "--- JSON"
    start = stdout.rfind(marker)
    if start != -1:
        stdout = stdout[start:]
    first = stdout.find("{")
    last = stdout.rfind("}")
    if first == -1 or last == -1 or last <= first:
        raise ValueError("No JSON block found in benchmark output")
    return json.loads(stdout[first : last + 1])


def _run_benchmark(python: str, bits: int, t: int, l: int, count: int, workers: int = 1) -> Dict:
    cmd = [python, str(ROOT / "scripts" / "benchmark.py")]
    inp = f"{bits}\n{t}\n{l}\n{count}\n{workers}\n"
    proc = subprocess.run(cmd, input=inp.encode(), stdout=subprocess.PIPE, stderr=subprocess.STDOUT, cwd=str(ROOT))
    out = proc.stdout.decode(errors="replace")
    if proc.returncode != 0:
        raise RuntimeError(f"benchmark run failed:\n{out}")
    result = _parse_last_json(out)
    if not result["success"]:
        raise RuntimeError(f"benchmark reported a failed round trip:\n{out}")
    return result


def _avg_runs(python: str, bits: int, t: int, l: int) -> Dict[str, float]:
    runs = [_run_benchmark(python, bits, t, l, BATCH) for _ in range(RUNS)]
    return {
        "keygen_s": sum(r["timings_sec"]["keygen"] for r in runs) / RUNS,
        "encrypt_ms": sum(r["encrypt"]["mean_ms"] for r in runs) / RUNS,
        "share_decrypt_ms": sum(r["share_decrypt_per_party"]["mean_ms"] for r in runs) / RUNS / BATCH,
        "combine_ms": sum(r["combine"]["mean_ms"] for r in runs) / RUNS,
    }


def _write_table(ws, headers: List[str], rows: List[List], start_row: int = 1, start_col: int = 1) -> None:
    for j, h in enumerate(headers, start=start_col):
        ws.cell(row=start_row, column=j, value=h)
    for i, row in enumerate(rows, start=start_row + 1):
        for j, val in enumerate(row, start=start_col):
            ws.cell(row=i, column=j, value=val)
    for j in range(start_col, start_col + len(headers)):
        ws.column_dimensions[get_column_letter(j)].width = 18


def main() -> None:
    python = sys.executable
    headers = ["KeyGen_s", "Encrypt_ms", "ShareDecrypt_ms", "Combine_ms"]

    print(f"[1/3] Key size sweep {KEY_SIZES} (t=2, l=3, {RUNS} runs each)…")
    rows1 = []
    for bits in KEY_SIZES:
        avg = _avg_runs(python, bits, 2, 3)
        rows1.append(
            [bits, round(avg["keygen_s"], 3), round(avg["encrypt_ms"], 3), round(avg["share_decrypt_ms"], 3), round(avg["combine_ms"], 3)]
        )

    print(f"[2/3] Party count sweep {PARTY_COUNTS} at {FIXED_BITS} bits…")
    rows2 = []
    for t, l in PARTY_COUNTS:
        avg = _avg_runs(python, FIXED_BITS, t, l)
        rows2.append(
            [f"{t}-of-{l}", t, l, round(avg["keygen_s"], 3), round(avg["encrypt_ms"], 3), round(avg["share_decrypt_ms"], 3), round(avg["combine_ms"], 3)]
        )

    wb = Workbook()
    ws1 = wb.active
    ws1.title = "KeySize"
    _write_table(ws1, ["Modulus_Bits"] + headers, rows1)
    ws2 = wb.create_sheet("Parties")
    _write_table(ws2, ["Config", "t", "l"] + headers, rows2)
    xlsx_path = ART / "benchmark_pht.xlsx"
    wb.save(xlsx_path)

    print("[3/3] Generating figures…")
    sizes = [r[0] for r in rows1]
    fig, axs = plt.subplots(1, 2, figsize=(12, 4))
    axs[0].plot(sizes, [r[1] for r in rows1], marker="o")
    axs[0].set_title("Key generation")
    axs[0].set_xlabel("Modulus size (bits)")
    axs[0].set_ylabel("Time (s)")
    axs[1].plot(sizes, [r[2] for r in rows1], marker="o", label="encrypt")
    axs[1].plot(sizes, [r[3] for r in rows1], marker="o", label="share_decrypt")
    axs[1].plot(sizes, [r[4] for r in rows1], marker="o", label="combine")
    axs[1].set_title("Per-ciphertext cost")
    axs[1].set_xlabel("Modulus size (bits)")
    axs[1].set_ylabel("Time (ms)")
    axs[1].legend()
    for ax in axs:
        ax.grid(True, linestyle="--", linewidth=0.5)
    fig.tight_layout()
    fig1_path = ART / "fig_keysize.png"
    fig.savefig(fig1_path, dpi=200)
    plt.close(fig)

    labels = [r[0] for r in rows2]
    fig, ax = plt.subplots(figsize=(7, 4))
    ax.plot(labels, [r[5] for r in rows2], marker="o", label="share_decrypt")
    ax.plot(labels, [r[6] for r in rows2], marker="o", color="tab:red", label="combine")
    ax.set_title(f"Threshold configurations at {FIXED_BITS} bits")
    ax.set_xlabel("t-of-l")
    ax.set_ylabel("Time (ms)")
    ax.legend()
    ax.grid(True, linestyle="--", linewidth=0.5)
    fig.tight_layout()
    fig2_path = ART / "fig_parties.png"
    fig.savefig(fig2_path, dpi=200)
    plt.close(fig)

    print(f"Saved: {xlsx_path}")
    print(f"Saved: {fig1_path}")
    print(f"Saved: {fig2_path}")


if __name__ == "__main__":
    main()
