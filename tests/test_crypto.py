"""Tests for credential encryption."""

from __future__ import annotations

import pytest
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from learnpath.crypto import CredentialCipher, V2_PREFIX, derive_key
from learnpath.errors import CredentialDecryptError

PASSPHRASE = "test-encryption-key"
IV = "test-iv-16-bytes"


@pytest.fixture
def legacy():
	return CredentialCipher(PASSPHRASE, IV)


@pytest.fixture
def random_iv():
	return CredentialCipher(PASSPHRASE, IV, mode="random-iv")


def test_legacy_round_trip(legacy):
	token = legacy.encrypt("AIza-secret-key")
	assert token != "AIza-secret-key"
	assert legacy.decrypt(token) == "AIza-secret-key"


def test_legacy_output_is_deterministic_hex(legacy):
	token = legacy.encrypt("same")
	assert token == legacy.encrypt("same")
	bytes.fromhex(token)


def test_legacy_matches_plain_aes_cbc(legacy):
	# Values written by the old service: AES-256-CBC, scrypt key, fixed IV, hex
	padder = padding.PKCS7(128).padder()
	data = padder.update(b"stored-before") + padder.finalize()
	encryptor = Cipher(algorithms.AES(derive_key(PASSPHRASE)), modes.CBC(IV.encode()[:16])).encryptor()
	stored = (encryptor.update(data) + encryptor.finalize()).hex()
	assert legacy.decrypt(stored) == "stored-before"


def test_random_iv_round_trip(random_iv):
	first = random_iv.encrypt("AIza-secret-key")
	second = random_iv.encrypt("AIza-secret-key")
	assert first.startswith(V2_PREFIX)
	assert first != second
	assert random_iv.decrypt(first) == "AIza-secret-key"


def test_both_formats_readable_in_either_mode(legacy, random_iv):
	assert random_iv.decrypt(legacy.encrypt("old")) == "old"
	assert legacy.decrypt(random_iv.encrypt("new")) == "new"


def test_wrong_passphrase_fails(legacy):
	other = CredentialCipher("another-passphrase", IV)
	with pytest.raises(CredentialDecryptError):
		other.decrypt(legacy.encrypt("AIza-secret-key"))


@pytest.mark.parametrize("bad", ["not-hex", "abcd", "v2:00"])
def test_malformed_input(legacy, bad):
	with pytest.raises(CredentialDecryptError):
		legacy.decrypt(bad)


def test_short_iv_rejected():
	with pytest.raises(ValueError):
		CredentialCipher(PASSPHRASE, "short")


def test_unknown_mode_rejected():
	with pytest.raises(ValueError):
		CredentialCipher(PASSPHRASE, IV, mode="rot13")
