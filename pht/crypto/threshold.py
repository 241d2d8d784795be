"""Partial decryption and share combination.

Party i turns a ciphertext c into the decryption share c^(2*delta*s_i). Any
t shares of the same ciphertext are combined by Lagrange interpolation in
the exponent; delta = l! makes every coefficient an integer, and the
leftover factor 4*delta^2 is removed with theta^-1.

Shares carry the fingerprint of the ciphertext they were computed from and
the combiner refuses to mix fingerprints.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from .arith import L, inv_mod, pow_mod
from .errors import (
    CiphertextMismatch,
    DuplicateShareIndex,
    InconsistentShares,
    InsufficientShares,
    PublicKeyMismatch,
    ShareIndexOutOfRange,
)
from .paillier import Ciphertext, DecryptionShare, PrivateKeyShare, PublicKey, check_ciphertext


def share_decrypt(pk: PublicKey, key_share: PrivateKeyShare, c: Ciphertext) -> DecryptionShare:
    if key_share.key_id != pk.key_id or key_share.params != pk.params:
        raise PublicKeyMismatch("private key share does not belong to this public key")
    check_ciphertext(pk, c)
    exponent = 2 * pk.delta * key_share.value
    return DecryptionShare(key_share.index, pow_mod(c.value, exponent, pk.n_squared), c.fingerprint)


def lagrange_coefficient(i: int, indices: Iterable[int], delta: int) -> int:
    """delta * prod_{j != i} j / (j - i), exact."""
    num = delta
    den = 1
    for j in indices:
        if j == i:
            continue
        num *= j
        den *= j - i
    coeff, rem = divmod(num, den)
    if rem:
        raise ValueError(f"delta does not clear the denominator for index {i}")
    return coeff


def _collect(pk: PublicKey, shares: Iterable[DecryptionShare]) -> Dict[int, DecryptionShare]:
    by_index: Dict[int, DecryptionShare] = {}
    for share in shares:
        if share.index in by_index:
            raise DuplicateShareIndex(f"two shares carry index {share.index}")
        by_index[share.index] = share
    for index in by_index:
        if not 1 <= index <= pk.params.l:
            raise ShareIndexOutOfRange(f"share index {index} outside [1, {pk.params.l}]")
    if len(by_index) < pk.params.t:
        raise InsufficientShares(f"need {pk.params.t} shares, got {len(by_index)}")
    return by_index


def share_combine(
    pk: PublicKey,
    shares: Iterable[DecryptionShare],
    ciphertext: Optional[Ciphertext] = None,
) -> int:
    """Recover the plaintext from at least t decryption shares of one ciphertext.

    If ``ciphertext`` is given, every share must have been computed from it.
    """
    by_index = _collect(pk, shares)
    ids = {share.ciphertext_id for share in by_index.values()}
    if len(ids) != 1:
        raise CiphertextMismatch("decryption shares were computed from different ciphertexts")
    if ciphertext is not None:
        check_ciphertext(pk, ciphertext)
        if ciphertext.fingerprint not in ids:
            raise CiphertextMismatch("decryption shares were not computed from this ciphertext")

    n, n2 = pk.n, pk.n_squared
    indices: List[int] = sorted(by_index)
    acc = 1
    for i in indices:
        value = by_index[i].value
        if not 0 < value < n2:
            raise InconsistentShares(f"share {i} is out of range")
        coeff = lagrange_coefficient(i, indices, pk.delta)
        acc = (acc * pow_mod(value, 2 * coeff, n2)) % n2
    if acc % n != 1:
        raise InconsistentShares("combined shares do not decode; a share is corrupt or from another key")
    return (L(acc, n) * inv_mod(pk.theta, n)) % n


def decrypt_single(pk: PublicKey, key_share: PrivateKeyShare, c: Ciphertext) -> int:
    """Decrypt with one share; only possible for keys dealt with t = 1."""
    if pk.params.t != 1:
        raise InsufficientShares(f"single-share decryption needs t = 1, this key has t = {pk.params.t}")
    return share_combine(pk, [share_decrypt(pk, key_share, c)], c)


__all__ = ["share_decrypt", "lagrange_coefficient", "share_combine", "decrypt_single"]
