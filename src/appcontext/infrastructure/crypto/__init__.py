"""
Credential Cipher
=================

AES decryption of the database passwords stored in the configuration file.

Stored passwords are hex-encoded AES ciphertext produced with the raw block
cipher (no chaining mode, no padding scheme). Only the first block is ever
decrypted, so a stored password round-trips only if it fits in 16 bytes.
Changing the scheme requires re-encrypting every stored credential.
"""

from typing import Union

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from appcontext.core.exceptions import CipherKeyError, CredentialError


BLOCK_SIZE = 16
VALID_KEY_SIZES = (16, 24, 32)

KeyType = Union[bytes, str]


def _key_bytes(key: KeyType) -> bytes:
    if isinstance(key, str):
        key = key.encode("utf-8")
    if len(key) not in VALID_KEY_SIZES:
        raise CipherKeyError(
            f"crypto/aes: invalid key size {len(key)}",
            {"valid_sizes": list(VALID_KEY_SIZES)}
        )
    return key


def _block_cipher(key: bytes) -> Cipher:
    return Cipher(algorithms.AES(key), modes.ECB())


def decrypt_aes(key: KeyType, hex_ciphertext: str) -> str:
    """
    Decrypt a hex-encoded stored password.

    Args:
        key: AES key, 16/24/32 bytes (str keys are UTF-8 encoded)
        hex_ciphertext: Hex ciphertext as stored in the configuration file

    Returns:
        The plaintext password, trailing NUL padding removed

    Raises:
        CipherKeyError: If the key has an invalid length
        CredentialError: If the ciphertext is not hex or not whole blocks
    """
    key_bytes = _key_bytes(key)

    try:
        ciphertext = bytes.fromhex(hex_ciphertext)
    except ValueError as exc:
        raise CredentialError(f"Ciphertext is not valid hex: {exc}") from exc

    if not ciphertext:
        return ""
    if len(ciphertext) % BLOCK_SIZE:
        raise CredentialError(
            f"Ciphertext length {len(ciphertext)} is not a multiple of the block size"
        )

    decryptor = _block_cipher(key_bytes).decryptor()
    first_block = decryptor.update(ciphertext[:BLOCK_SIZE]) + decryptor.finalize()

    # Blocks after the first are left zeroed
    plaintext = first_block + bytes(len(ciphertext) - BLOCK_SIZE)
    return plaintext.rstrip(b"\x00").decode("utf-8", errors="replace")


def encrypt_aes(key: KeyType, plaintext: str) -> str:
    """
    Encrypt a password into the stored hex format.

    The plaintext is NUL-padded to a single block. Longer values are refused
    because `decrypt_aes` could not recover them.
    """
    key_bytes = _key_bytes(key)
    data = plaintext.encode("utf-8")
    if len(data) > BLOCK_SIZE:
        raise CredentialError(
            f"Plaintext of {len(data)} bytes does not fit in one {BLOCK_SIZE}-byte block"
        )

    encryptor = _block_cipher(key_bytes).encryptor()
    block = data.ljust(BLOCK_SIZE, b"\x00")
    return (encryptor.update(block) + encryptor.finalize()).hex()
