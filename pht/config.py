"""Tunable parameters for key generation and batch work."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from typing import Mapping, Optional

_ENV_PREFIX = "PHT_"


@dataclass(frozen=True)
class Settings:
    # requests below this modulus size raise InsecureKeySize
    min_key_bits: int = 512
    # Miller-Rabin rounds; 40 keeps the false-positive rate below 2^-80
    mr_rounds: int = 40
    # >1 spreads prime search and batch operations over worker processes
    workers: int = 1
    # candidates a single search task tries before reporting back empty-handed
    search_budget: int = 2048
    max_modulus_attempts: int = 16
    # p and q must differ by more than 2^(bits/2 - prime_gap_margin)
    prime_gap_margin: int = 100

    def __post_init__(self) -> None:
        if self.min_key_bits < 0:
            raise ValueError("min_key_bits must be non-negative")
        if self.mr_rounds < 1:
            raise ValueError("mr_rounds must be at least 1")
        if self.workers < 1:
            raise ValueError("workers must be at least 1")
        if self.search_budget < 1:
            raise ValueError("search_budget must be at least 1")
        if self.max_modulus_attempts < 1:
            raise ValueError("max_modulus_attempts must be at least 1")
        if self.prime_gap_margin < 0:
            raise ValueError("prime_gap_margin must be non-negative")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``PHT_*`` variables, e.g. ``PHT_MR_ROUNDS=64``."""
        env = os.environ if environ is None else environ
        overrides = {}
        for f in fields(cls):
            raw = env.get(_ENV_PREFIX + f.name.upper())
            if raw is None or raw.strip() == "":
                continue
            try:
                overrides[f.name] = int(raw)
            except ValueError as exc:
                raise ValueError(f"{_ENV_PREFIX}{f.name.upper()} must be an integer, got {raw!r}") from exc
        return cls(**overrides)

    def with_overrides(self, **changes: int) -> "Settings":
        return replace(self, **changes)


DEFAULT_SETTINGS = Settings()


__all__ = ["Settings", "DEFAULT_SETTINGS"]
