"""
Unit tests for X-Nylas-Signature verification.
"""

import hashlib
import hmac

import pytest

from bridge.services.signature import compute_signature, verify_signature


SECRET = "test-webhook-secret"


def _sign(body: bytes, secret: str = SECRET) -> str:
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


class TestComputeSignature:

    def test_matches_reference_hmac(self):
        body = b'{"type":"message.created"}'
        assert compute_signature(body, SECRET) == _sign(body)

    def test_is_lowercase_hex_of_sha256_length(self):
        sig = compute_signature(b"abc", SECRET)
        assert len(sig) == 64
        assert sig == sig.lower()


class TestVerifySignature:
    """verify_signature never raises and only accepts the exact digest."""

    @pytest.mark.parametrize(
        "body",
        [
            b"",
            b"OK",
            b'{"type": "message.created", "data": {}}',
            "Företag: Åkesson".encode("utf-8"),
            bytes(range(256)),
        ],
    )
    def test_valid_signature_round_trip(self, body):
        assert verify_signature(body, SECRET, _sign(body)) is True

    def test_uppercase_hex_is_accepted(self):
        body = b"payload"
        assert verify_signature(body, SECRET, _sign(body).upper()) is True

    def test_surrounding_whitespace_is_tolerated(self):
        body = b"payload"
        assert verify_signature(body, SECRET, f"  {_sign(body)}\n") is True

    def test_flipping_a_body_bit_fails(self):
        body = bytearray(b'{"type":"message.created"}')
        sig = _sign(bytes(body))
        for i in range(len(body)):
            tampered = bytearray(body)
            tampered[i] ^= 0x01
            assert verify_signature(bytes(tampered), SECRET, sig) is False

    def test_flipping_a_signature_bit_fails(self):
        body = b"payload"
        digest = bytearray(bytes.fromhex(_sign(body)))
        digest[0] ^= 0x80
        assert verify_signature(body, SECRET, digest.hex()) is False

    def test_reserialised_json_fails(self):
        """The digest covers raw bytes, so whitespace changes must break it."""
        raw = b'{"type": "message.created"}'
        reserialised = b'{"type":"message.created"}'
        assert verify_signature(reserialised, SECRET, _sign(raw)) is False

    def test_wrong_secret_fails(self):
        body = b"payload"
        assert verify_signature(body, SECRET, _sign(body, "other-secret")) is False

    @pytest.mark.parametrize("secret", [None, ""])
    def test_missing_secret_fails(self, secret):
        body = b"payload"
        assert verify_signature(body, secret, _sign(body)) is False

    @pytest.mark.parametrize("signature", [None, ""])
    def test_missing_signature_fails(self, signature):
        assert verify_signature(b"payload", SECRET, signature) is False

    @pytest.mark.parametrize(
        "signature",
        [
            "not-hex-at-all",
            "abc",                      # odd length
            "zz" * 32,                  # right length, invalid hex
            "00" * 16,                  # valid hex, wrong length
            "00" * 33,
        ],
    )
    def test_malformed_signature_fails_without_raising(self, signature):
        assert verify_signature(b"payload", SECRET, signature) is False
