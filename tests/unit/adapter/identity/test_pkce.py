"""Unit tests for PKCE utilities."""

import re
from base64 import urlsafe_b64decode, urlsafe_b64encode
from hashlib import sha256

from taskboard.adapter.identity.pkce import generate_pkce_pair


class TestGeneratePkcePair:
    """Tests for generate_pkce_pair function."""

    def test_verifier_is_base64url_encoded(self):
        """Verifier should be base64url without padding, 43-128 characters."""
        verifier, _ = generate_pkce_pair()

        assert re.match(r"^[A-Za-z0-9_-]+$", verifier)
        assert 43 <= len(verifier) <= 128

    def test_challenge_is_sha256_of_verifier(self):
        """Challenge should be SHA-256 hash of verifier."""
        verifier, challenge = generate_pkce_pair()

        expected_hash = sha256(verifier.encode("ascii")).digest()
        expected_challenge = (
            urlsafe_b64encode(expected_hash).rstrip(b"=").decode("ascii")
        )

        assert challenge == expected_challenge
        assert len(urlsafe_b64decode(challenge + "==")) == 32

    def test_generates_unique_pairs(self):
        verifier1, _ = generate_pkce_pair()
        verifier2, _ = generate_pkce_pair()

        assert verifier1 != verifier2
