"""Session crypto for encrypted Viera models.

Newer TVs wrap every command in an AES-128-CBC envelope signed with
HMAC-SHA256. The keys are derived from the base64 seed handed out during
pairing (``enc_key``); the pairing exchange itself uses one-shot keys derived
from the TV's challenge.
"""

import base64
import hashlib
import hmac
import os
import struct
from typing import Tuple, Union

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .config.constants import HMAC_KEY_MASK

BLOCK_SIZE = 16
NONCE_SIZE = 12
HEADER_SIZE = NONCE_SIZE + 4

RESULT_END_TAG = b"</X_OriginalResult>"


def _check_size(name: str, value: bytes, size: int) -> None:
    if len(value) != size:
        raise ValueError(f"{name} must be {size} bytes, got {len(value)}")


def derive_session_key(seed_b64: str) -> Tuple[bytes, bytes, bytes]:
    """Derive the session material from a pairing seed.

    Args:
        seed_b64: Base64 ``enc_key`` returned by the TV when pairing

    Returns:
        Tuple of (iv, key, hmac_key)
    """
    iv = base64.b64decode(seed_b64)
    _check_size("session seed", iv, BLOCK_SIZE)

    key = bytearray(BLOCK_SIZE)
    for i in range(0, BLOCK_SIZE, 4):
        key[i] = iv[i + 2]
        key[i + 1] = iv[i + 3]
        key[i + 2] = iv[i]
        key[i + 3] = iv[i + 1]

    return iv, bytes(key), iv + iv


def derive_challenge_keys(challenge: bytes) -> Tuple[bytes, bytes]:
    """Derive the one-shot pairing keys from the TV challenge.

    Args:
        challenge: Raw 16-byte challenge (base64-decoded ``X_ChallengeKey``)

    Returns:
        Tuple of (key, hmac_key)
    """
    _check_size("challenge", challenge, BLOCK_SIZE)

    key = bytearray(BLOCK_SIZE)
    for i in range(0, BLOCK_SIZE, 4):
        key[i] = ~challenge[i + 3] & 0xFF
        key[i + 1] = ~challenge[i + 2] & 0xFF
        key[i + 2] = ~challenge[i + 1] & 0xFF
        key[i + 3] = ~challenge[i] & 0xFF

    hmac_key = bytearray(HMAC_KEY_MASK)
    for j in range(0, len(hmac_key), 4):
        hmac_key[j] ^= challenge[(j + 2) & 0xF]
        hmac_key[j + 1] ^= challenge[(j + 3) & 0xF]
        hmac_key[j + 2] ^= challenge[j & 0xF]
        hmac_key[j + 3] ^= challenge[(j + 1) & 0xF]

    return bytes(key), bytes(hmac_key)


def _pad(data: bytes) -> bytes:
    # Always pads, a full block when already aligned
    return data + b"\x00" * (BLOCK_SIZE - len(data) % BLOCK_SIZE)


def encrypt_payload(
    plaintext: Union[str, bytes], key: bytes, iv: bytes, hmac_key: bytes
) -> str:
    """Encrypt and sign a payload for the TV.

    Layout before encryption: 12 random bytes, the big-endian 32-bit
    plaintext length, the plaintext, then zero padding.

    Returns:
        base64(ciphertext || HMAC-SHA256(ciphertext))
    """
    _check_size("key", key, BLOCK_SIZE)
    _check_size("iv", iv, BLOCK_SIZE)
    _check_size("hmac key", hmac_key, 2 * BLOCK_SIZE)

    data = plaintext.encode("utf-8") if isinstance(plaintext, str) else plaintext
    header = os.urandom(NONCE_SIZE) + struct.pack(">I", len(data))

    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(_pad(header + data)) + encryptor.finalize()
    signature = hmac.new(hmac_key, ciphertext, hashlib.sha256).digest()

    return base64.b64encode(ciphertext + signature).decode("ascii")


def decrypt_bytes(ciphertext_b64: str, key: bytes, iv: bytes) -> bytes:
    """Decrypt a TV reply and return the plaintext bytes.

    The 16-byte header is dropped and the result is cut at the first NUL
    (padding). Anything after a closing ``</X_OriginalResult>`` is discarded.
    """
    _check_size("key", key, BLOCK_SIZE)
    _check_size("iv", iv, BLOCK_SIZE)

    raw = base64.b64decode(ciphertext_b64)
    if len(raw) % BLOCK_SIZE:
        raise ValueError(
            f"ciphertext length {len(raw)} is not a multiple of {BLOCK_SIZE}"
        )

    decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
    plain = decryptor.update(raw) + decryptor.finalize()

    plain = plain[HEADER_SIZE:].split(b"\x00", 1)[0]

    end = plain.find(RESULT_END_TAG)
    if end != -1:
        plain = plain[:end + len(RESULT_END_TAG)]

    return plain


def decrypt_payload(ciphertext_b64: str, key: bytes, iv: bytes) -> str:
    """Decrypt a TV reply to text. See :func:`decrypt_bytes`."""
    return decrypt_bytes(ciphertext_b64, key, iv).decode("utf-8", errors="replace")
