"""Exceptions raised by the threshold Paillier primitives.

Everything a caller can recover from (retry key generation, fetch more
shares, reject an input) derives from :class:`ThresholdPaillierError`.
:class:`NonInvertibleLambda` does not: it means key generation produced an
inconsistent modulus and should be treated as a bug.
"""

from __future__ import annotations


class ThresholdPaillierError(ValueError):
    """Base class for recoverable errors."""


class InvalidThresholdConfig(ThresholdPaillierError):
    pass


class InsecureKeySize(ThresholdPaillierError):
    pass


class DegenerateModulus(ThresholdPaillierError):
    pass


class PlaintextOutOfRange(ThresholdPaillierError):
    pass


class PublicKeyMismatch(ThresholdPaillierError):
    pass


class NotInvertible(ThresholdPaillierError):
    pass


class InsufficientShares(ThresholdPaillierError):
    pass


class DuplicateShareIndex(ThresholdPaillierError):
    pass


class ShareIndexOutOfRange(ThresholdPaillierError):
    pass


class CiphertextMismatch(ThresholdPaillierError):
    """Decryption shares were computed from different ciphertexts."""


class InconsistentShares(ThresholdPaillierError):
    """Combined shares do not decode to a valid plaintext."""


class NonInvertibleLambda(RuntimeError):
    """gcd(lambda, n) != 1 after modulus generation."""


__all__ = [
    "ThresholdPaillierError",
    "InvalidThresholdConfig",
    "InsecureKeySize",
    "DegenerateModulus",
    "PlaintextOutOfRange",
    "PublicKeyMismatch",
    "NotInvertible",
    "InsufficientShares",
    "DuplicateShareIndex",
    "ShareIndexOutOfRange",
    "CiphertextMismatch",
    "InconsistentShares",
    "NonInvertibleLambda",
]
