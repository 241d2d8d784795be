"""
tests/test_codec.py: values survive the trip across a party boundary.
"""

from __future__ import annotations

import json

import pytest

from pht.crypto import paillier
from pht.crypto.paillier import PublicKey
from pht.crypto.threshold import share_combine, share_decrypt
from pht.protocol import codec


def test_threshold_decryption_through_serialized_values(key_2_of_3, rng):
    """
    Every value that crosses a party boundary goes through JSON text: the
    public key to the client, key shares to the parties, the ciphertext to the
    parties and decryption shares to the combiner.
    """
    pk, key_shares = key_2_of_3
    client_pk = codec.loads(codec.dumps(pk))
    assert client_pk == pk
    assert client_pk.key_id == pk.key_id

    wire_ct = codec.dumps(paillier.encrypt(client_pk, 4242, rng=rng))

    wire_shares = []
    for party in (key_shares[0], key_shares[2]):
        ks = codec.loads(codec.dumps(party))
        assert ks == party
        wire_shares.append(codec.dumps(share_decrypt(pk, ks, codec.loads(wire_ct))))

    shares = [codec.loads(s) for s in wire_shares]
    assert share_combine(pk, shares, codec.loads(wire_ct)) == 4242


def test_integers_are_hex_strings(key_2_of_3):
    pk, _ = key_2_of_3
    payload = json.loads(codec.dumps(pk))
    assert payload["type"] == "PublicKey"
    assert int(payload["data"]["n"], 16) == pk.n
    assert payload["data"]["t"] == 2 and payload["data"]["l"] == 3


def test_inconsistent_public_key_rejected(key_2_of_3):
    pk, _ = key_2_of_3
    data = pk.to_dict()
    data["theta"] = format(pk.theta + 1, "x")
    with pytest.raises(ValueError, match="theta"):
        PublicKey.from_dict(data)


def test_malformed_payloads():
    with pytest.raises(ValueError):
        codec.decode({"type": "Plaintext", "data": {}})
    with pytest.raises(ValueError):
        codec.decode({"data": {}})
    with pytest.raises(ValueError, match="missing field"):
        codec.decode({"type": "Ciphertext", "data": {"value": "ff"}})
    with pytest.raises(TypeError):
        codec.encode(42)
