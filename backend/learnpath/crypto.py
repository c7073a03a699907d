"""Symmetric encryption of stored third-party API credentials.

AES-256-CBC with a key derived from ``ENCRYPTION_KEY`` by scrypt. Two output
formats exist:

* legacy: the IV is the first 16 bytes of ``ENCRYPTION_IV`` and the value is
  the bare ciphertext as hex. Every value shares the IV, so equal plaintexts
  give equal ciphertexts. Kept so previously stored keys still decrypt.
* ``v2:``: a random IV per value, stored as ``v2:`` + hex(iv + ciphertext).

``decrypt`` reads both formats whatever the configured mode is.
"""

from __future__ import annotations
import logging
import os

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from .errors import CredentialDecryptError
from .settings import Settings

logger = logging.getLogger(__name__)

LEGACY_MODE = "legacy"
RANDOM_IV_MODE = "random-iv"
V2_PREFIX = "v2:"

_KDF_SALT = b"salt"
_BLOCK_BITS = 128
_IV_BYTES = 16


def derive_key(passphrase: str) -> bytes:
	# Same parameters as Node's crypto.scryptSync defaults
	kdf = Scrypt(salt=_KDF_SALT, length=32, n=2**14, r=8, p=1)
	return kdf.derive(passphrase.encode("utf-8"))


class CredentialCipher:
	def __init__(self, passphrase: str, iv: str, *, mode: str = LEGACY_MODE) -> None:
		if mode not in (LEGACY_MODE, RANDOM_IV_MODE):
			raise ValueError(f"unknown encryption mode: {mode!r}")
		fixed_iv = iv.encode("utf-8")[:_IV_BYTES]
		if len(fixed_iv) != _IV_BYTES:
			raise ValueError("ENCRYPTION_IV must be at least 16 bytes")
		self.mode = mode
		self._key = derive_key(passphrase)
		self._fixed_iv = fixed_iv

	@classmethod
	def from_settings(cls, settings: Settings) -> "CredentialCipher":
		return cls(settings.encryption_key, settings.encryption_iv, mode=settings.encryption_mode)

	def encrypt(self, plaintext: str) -> str:
		if self.mode == RANDOM_IV_MODE:
			iv = os.urandom(_IV_BYTES)
			return V2_PREFIX + (iv + self._encrypt(plaintext, iv)).hex()
		return self._encrypt(plaintext, self._fixed_iv).hex()

	def decrypt(self, ciphertext_hex: str) -> str:
		try:
			if ciphertext_hex.startswith(V2_PREFIX):
				raw = bytes.fromhex(ciphertext_hex[len(V2_PREFIX):])
				iv, body = raw[:_IV_BYTES], raw[_IV_BYTES:]
			else:
				iv, body = self._fixed_iv, bytes.fromhex(ciphertext_hex)
			return self._decrypt(body, iv)
		except (ValueError, UnicodeDecodeError) as exc:
			logger.error("Error decrypting credential: %s", exc)
			raise CredentialDecryptError() from exc

	def _encrypt(self, plaintext: str, iv: bytes) -> bytes:
		padder = padding.PKCS7(_BLOCK_BITS).padder()
		data = padder.update(plaintext.encode("utf-8")) + padder.finalize()
		encryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).encryptor()
		return encryptor.update(data) + encryptor.finalize()

	def _decrypt(self, body: bytes, iv: bytes) -> str:
		if len(iv) != _IV_BYTES:
			raise ValueError("ciphertext is too short")
		decryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).decryptor()
		data = decryptor.update(body) + decryptor.finalize()
		unpadder = padding.PKCS7(_BLOCK_BITS).unpadder()
		return (unpadder.update(data) + unpadder.finalize()).decode("utf-8")
