"""
Opaque identifier tokens.

Internal ids travel in URLs as AES-256-ECB ciphertext in hex. The key is
derived from the configured secret with OpenSSL's EVP_BytesToKey (MD5, no
salt), so tokens issued by earlier deployments keep decrypting.
"""

import hashlib
from functools import lru_cache
from typing import Optional

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from ..config import settings
from ..core.errors import InvalidIdentifierError

KEY_LENGTH = 32
BLOCK_SIZE_BITS = 128


@lru_cache(maxsize=8)
def derive_key(secret: str, key_length: int = KEY_LENGTH) -> bytes:
    """EVP_BytesToKey with MD5, one iteration and no salt."""
    key = b""
    block = b""
    while len(key) < key_length:
        block = hashlib.md5(block + secret.encode("utf-8")).digest()
        key += block
    return key[:key_length]


def _cipher(secret: Optional[str]) -> Cipher:
    return Cipher(algorithms.AES(derive_key(secret or settings.id_encryption_key)), modes.ECB())


def encrypt(text: str, secret: Optional[str] = None) -> str:
    """Encrypt an internal id into a hex token."""
    padder = padding.PKCS7(BLOCK_SIZE_BITS).padder()
    padded = padder.update(text.encode("utf-8")) + padder.finalize()
    encryptor = _cipher(secret).encryptor()
    return (encryptor.update(padded) + encryptor.finalize()).hex()


def decrypt(token: str, secret: Optional[str] = None) -> str:
    """
    Decrypt a hex token back into the internal id.

    Raises:
        InvalidIdentifierError: Not hex, wrong length, bad padding or not UTF-8
    """
    try:
        data = bytes.fromhex(token)
        decryptor = _cipher(secret).decryptor()
        padded = decryptor.update(data) + decryptor.finalize()
        unpadder = padding.PKCS7(BLOCK_SIZE_BITS).unpadder()
        return (unpadder.update(padded) + unpadder.finalize()).decode("utf-8")
    except ValueError as e:
        # UnicodeDecodeError is a ValueError too
        raise InvalidIdentifierError() from e
