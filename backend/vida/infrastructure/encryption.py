"""Field Encryption — AES-256-GCM for medical data at rest, plus hashing helpers.

Invariants:
    - Ciphertext format is "iv:authTag:ciphertext", every part hex-encoded
    - IV is 16 random bytes per call; the same plaintext never encrypts twice the same
    - Tampered or malformed ciphertext raises ValueError, never returns garbage
    - Key is exactly 32 bytes (64 hex characters)

Design Decisions:
    - cryptography's AESGCM appends the 16-byte tag to the ciphertext; we split it
      out so rows written by the previous Node service decrypt unchanged
"""

import hashlib
import hmac
import json
import secrets
from typing import Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

IV_LENGTH = 16
AUTH_TAG_LENGTH = 16


class FieldCipher:
    """Encrypts individual column values with a shared AES-256 key."""

    def __init__(self, key_hex: str):
        if len(key_hex) != 64:
            raise ValueError("Encryption key must be 64 hex characters (32 bytes)")
        self._aead = AESGCM(bytes.fromhex(key_hex))

    def encrypt(self, plaintext: str) -> str:
        iv = secrets.token_bytes(IV_LENGTH)
        sealed = self._aead.encrypt(iv, plaintext.encode("utf-8"), None)
        ciphertext, tag = sealed[:-AUTH_TAG_LENGTH], sealed[-AUTH_TAG_LENGTH:]
        return f"{iv.hex()}:{tag.hex()}:{ciphertext.hex()}"

    def decrypt(self, token: str) -> str:
        parts = token.split(":")
        if len(parts) != 3:
            raise ValueError("Invalid ciphertext format")
        try:
            iv, tag, ciphertext = (bytes.fromhex(p) for p in parts)
        except ValueError as e:
            raise ValueError("Invalid ciphertext encoding") from e
        if len(iv) != IV_LENGTH or len(tag) != AUTH_TAG_LENGTH:
            raise ValueError("Invalid ciphertext format")
        try:
            plaintext = self._aead.decrypt(iv, ciphertext + tag, None)
        except InvalidTag as e:
            raise ValueError("Ciphertext failed authentication") from e
        return plaintext.decode("utf-8")

    def encrypt_json(self, data: Any) -> str:
        return self.encrypt(json.dumps(data, ensure_ascii=False))

    def decrypt_json(self, token: str) -> Any:
        return json.loads(self.decrypt(token))


def sha256_hex(data: str | bytes) -> str:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def generate_secure_token(nbytes: int = 32) -> str:
    return secrets.token_hex(nbytes)


def secure_compare(a: str, b: str) -> bool:
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


_cipher: FieldCipher | None = None


def get_cipher() -> FieldCipher:
    """Process-wide cipher built from settings on first use."""
    global _cipher
    if _cipher is None:
        from vida.config import get_settings
        _cipher = FieldCipher(get_settings().encryption_key)
    return _cipher
