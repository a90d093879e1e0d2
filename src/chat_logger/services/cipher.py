# src/chat_logger/services/cipher.py
"""Symmetric encryption of message bodies at rest."""

from __future__ import annotations

import base64
import binascii
import hashlib
import logging
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from chat_logger.core.exceptions import DecryptionFailure

logger = logging.getLogger(__name__)

DECRYPTION_FAILED = "[decryption failed]"

KEY_LENGTH_BYTES = 32
NONCE_LENGTH_BYTES = 12
GCM_TAG_LENGTH_BYTES = 16
KDF_INFO = b"chat-logger-v1"

# OpenSSL "enc" / CryptoJS passphrase format used by older deployments.
LEGACY_MAGIC = b"Salted__"
LEGACY_SALT_BYTES = 8
LEGACY_IV_BYTES = 16


def _evp_bytes_to_key(passphrase: bytes, salt: bytes) -> tuple[bytes, bytes]:
    """Derive an AES-256 key and CBC IV the way OpenSSL's EVP_BytesToKey(MD5) does."""
    derived = b""
    block = b""
    while len(derived) < KEY_LENGTH_BYTES + LEGACY_IV_BYTES:
        block = hashlib.md5(block + passphrase + salt).digest()
        derived += block
    return derived[:KEY_LENGTH_BYTES], derived[KEY_LENGTH_BYTES:KEY_LENGTH_BYTES + LEGACY_IV_BYTES]


class MessageCipher:
    """Encrypts and decrypts message bodies with a process-wide passphrase.

    New ciphertexts are AES-256-GCM (``nonce || ciphertext || tag``, base64).
    The key is derived once from the passphrase with HKDF-SHA256 and never
    rotated: a different passphrase cannot read earlier ciphertexts.
    """

    def __init__(self, passphrase: str) -> None:
        if not passphrase:
            raise ValueError("Encryption passphrase must be provided")
        self._passphrase = passphrase.encode()
        self._key = HKDF(
            algorithm=hashes.SHA256(),
            length=KEY_LENGTH_BYTES,
            salt=None,
            info=KDF_INFO,
        ).derive(self._passphrase)
        self._aead = AESGCM(self._key)

    def encrypt(self, plaintext: str | None) -> str:
        """Encrypt a message body.

        Empty or missing plaintext maps to an empty ciphertext.
        """
        if not plaintext:
            return ""
        nonce = os.urandom(NONCE_LENGTH_BYTES)
        sealed = self._aead.encrypt(nonce, plaintext.encode("utf-8"), None)
        return base64.b64encode(nonce + sealed).decode("ascii")

    def decrypt(self, ciphertext: str | None) -> str:
        """Decrypt a stored body, returning ``DECRYPTION_FAILED`` on any failure."""
        try:
            return self.decrypt_strict(ciphertext)
        except DecryptionFailure as err:
            logger.warning("Could not decrypt stored message: %s", err)
            return DECRYPTION_FAILED

    def decrypt_strict(self, ciphertext: str | None) -> str:
        """Decrypt a stored body.

        Raises:
            DecryptionFailure: If the payload is not valid ciphertext for this key.
        """
        if not ciphertext:
            return ""
        try:
            raw = base64.b64decode(ciphertext, validate=True)
        except (binascii.Error, ValueError) as err:
            raise DecryptionFailure("payload is not base64") from err

        if raw.startswith(LEGACY_MAGIC):
            plain = self._decrypt_legacy(raw)
        else:
            plain = self._decrypt_gcm(raw)

        try:
            return plain.decode("utf-8")
        except UnicodeDecodeError as err:
            raise DecryptionFailure("plaintext is not UTF-8") from err

    def _decrypt_gcm(self, raw: bytes) -> bytes:
        if len(raw) < NONCE_LENGTH_BYTES + GCM_TAG_LENGTH_BYTES:
            raise DecryptionFailure("payload too short")
        nonce, sealed = raw[:NONCE_LENGTH_BYTES], raw[NONCE_LENGTH_BYTES:]
        try:
            return self._aead.decrypt(nonce, sealed, None)
        except InvalidTag as err:
            raise DecryptionFailure("authentication tag mismatch") from err

    def _decrypt_legacy(self, raw: bytes) -> bytes:
        header = len(LEGACY_MAGIC) + LEGACY_SALT_BYTES
        body = raw[header:]
        if not body or len(body) % 16:
            raise DecryptionFailure("legacy payload has an invalid length")
        salt = raw[len(LEGACY_MAGIC):header]
        key, iv = _evp_bytes_to_key(self._passphrase, salt)

        decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(body) + decryptor.finalize()
        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
        try:
            return unpadder.update(padded) + unpadder.finalize()
        except ValueError as err:
            raise DecryptionFailure("legacy payload padding is invalid") from err
