from __future__ import annotations

import logging
from typing import Final

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from ..exceptions import DecryptionFailed

_LOGGER = logging.getLogger(__name__)

# The platform's CLI login uses NIST P-256 (prime256v1 / SECP256R1)
CURVE: Final = ec.SECP256R1()
PUBLIC_KEY_SIZE: Final = 65  # Uncompressed: 0x04 + 32 bytes X + 32 bytes Y
PRIVATE_KEY_SIZE: Final = 32  # raw bytes
NONCE_SIZE: Final = 12
TAG_SIZE: Final = 16


def generate_key_pair() -> tuple[ec.EllipticCurvePrivateKey, bytes]:
    """Generate a new NIST P-256 key pair.

    Returns:
        A tuple containing the private key object and the uncompressed public key bytes.
    """
    private_key = ec.generate_private_key(CURVE)
    return private_key, get_public_key_bytes(private_key)


def load_private_key(private_key_bytes: bytes) -> ec.EllipticCurvePrivateKey:
    """Load a NIST P-256 private key from raw bytes.

    Args:
        private_key_bytes: The 32-byte private scalar.

    Returns:
        The private key object.
    """
    if len(private_key_bytes) != PRIVATE_KEY_SIZE:
        raise ValueError(f"Invalid private key size: {len(private_key_bytes)}")

    return ec.derive_private_key(int.from_bytes(private_key_bytes, "big"), CURVE)


def get_private_key_bytes(private_key: ec.EllipticCurvePrivateKey) -> bytes:
    """Get the raw 32-byte private scalar."""
    return private_key.private_numbers().private_value.to_bytes(PRIVATE_KEY_SIZE, "big")


def get_public_key_bytes(private_key: ec.EllipticCurvePrivateKey) -> bytes:
    """Get the 65-byte uncompressed public point from a private key."""
    return private_key.public_key().public_bytes(
        encoding=Encoding.X962, format=PublicFormat.UncompressedPoint
    )


def compute_shared_secret(
    private_key: ec.EllipticCurvePrivateKey, peer_public_key_bytes: bytes
) -> bytes:
    """Compute the ECDH shared secret.

    Args:
        private_key: The local private key.
        peer_public_key_bytes: The peer's uncompressed public key.

    Returns:
        The shared secret bytes (X coordinate of the agreement).

    Raises:
        ValueError: If the peer bytes are not a valid point on the curve.
    """
    _LOGGER.debug(
        "Computing shared secret with peer public key: %s", peer_public_key_bytes.hex()
    )
    peer_public_key = ec.EllipticCurvePublicKey.from_encoded_point(
        CURVE, peer_public_key_bytes
    )
    return private_key.exchange(ec.ECDH(), peer_public_key)


def aes_gcm_encrypt(
    key: bytes, nonce: bytes, data: bytes, aad: bytes | None = None
) -> bytes:
    """Encrypt data using AES-GCM.

    Args:
        key: 16 or 32 byte AES key.
        nonce: 12 byte initialization vector.
        data: Plaintext data.
        aad: Optional associated authenticated data.

    Returns:
        The ciphertext followed by the 16-byte authentication tag.
    """
    aesgcm = AESGCM(key)
    return aesgcm.encrypt(nonce, data, aad)


def aes_gcm_decrypt(
    key: bytes, nonce: bytes, data: bytes, aad: bytes | None = None
) -> bytes:
    """Decrypt data using AES-GCM.

    Args:
        key: 16 or 32 byte AES key.
        nonce: 12 byte initialization vector.
        data: Ciphertext with appended 16-byte tag.
        aad: Optional associated authenticated data.

    Returns:
        The decrypted plaintext.

    Raises:
        cryptography.exceptions.InvalidTag: If authentication fails.
    """
    aesgcm = AESGCM(key)
    return aesgcm.decrypt(nonce, data, aad)


def open_sealed_token(
    private_key: ec.EllipticCurvePrivateKey,
    server_public_key: bytes,
    nonce: bytes,
    sealed: bytes,
) -> str:
    """Recover the bearer token delivered by the CLI login endpoint.

    The raw ECDH output is the AES-256-GCM key; the platform applies no KDF.

    Args:
        private_key: The pending session's ephemeral private key.
        server_public_key: The server's ephemeral uncompressed public key.
        nonce: The 12-byte GCM nonce.
        sealed: Ciphertext with the 16-byte tag appended.

    Returns:
        The token as text.

    Raises:
        DecryptionFailed: On any malformed input or authentication failure.
    """
    if len(nonce) != NONCE_SIZE:
        raise DecryptionFailed(f"Unexpected nonce length: {len(nonce)}")
    if len(sealed) <= TAG_SIZE:
        raise DecryptionFailed("Sealed token is too short to carry a tag")

    try:
        shared_secret = compute_shared_secret(private_key, server_public_key)
        plaintext = aes_gcm_decrypt(shared_secret, nonce, sealed)
        return plaintext.decode("utf-8")
    except InvalidTag as err:
        raise DecryptionFailed("Failed to authenticate the sealed token") from err
    except (ValueError, UnicodeDecodeError) as err:
        raise DecryptionFailed(f"Failed to decrypt the sealed token: {err}") from err
