"""Tagged JSON encoding for keys, shares and ciphertexts.

Each value is written as ``{"type": <class name>, "data": <to_dict()>}``;
integers inside ``data`` are lowercase hex strings.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Union

from pht.crypto.paillier import Ciphertext, DecryptionShare, PrivateKeyShare, PublicKey

Encodable = Union[PublicKey, PrivateKeyShare, Ciphertext, DecryptionShare]

_TYPES: Dict[str, Any] = {
    cls.__name__: cls for cls in (PublicKey, PrivateKeyShare, Ciphertext, DecryptionShare)
}


def encode(obj: Encodable) -> Dict[str, Any]:
    name = type(obj).__name__
    if name not in _TYPES:
        raise TypeError(f"cannot encode {name}")
    return {"type": name, "data": obj.to_dict()}


def decode(payload: Dict[str, Any]) -> Encodable:
    try:
        cls = _TYPES[payload["type"]]
        data = payload["data"]
    except KeyError as exc:
        raise ValueError(f"malformed payload: missing or unknown {exc}") from exc
    try:
        return cls.from_dict(data)
    except KeyError as exc:
        raise ValueError(f"{payload['type']} payload is missing field {exc}") from exc


def dumps(obj: Encodable) -> str:
    return json.dumps(encode(obj), sort_keys=True, separators=(",", ":"))


def loads(text: str) -> Encodable:
    return decode(json.loads(text))


__all__ = ["encode", "decode", "dumps", "loads"]
