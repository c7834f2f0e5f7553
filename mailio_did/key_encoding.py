# mailio_did/key_encoding.py
"""
Conversion of raw public keys to and from their DID document encodings.

Verification keys travel as JSON Web Keys (``publicKeyJwk``), key agreement
keys as Base58 strings (``publicKeyMultibase``). Only Ed25519 is accepted for
verification and only X25519 for key agreement; anything else is rejected
instead of falling back to another decoder.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Tuple, Union

import base58
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519
from jwcrypto import jwk

from .constants import (
    KEY_TYPE_ED25519,
    KEY_TYPE_X25519_KEY_AGREEMENT,
)
from .errors import KeyEncodingError, NoKeyPresentError, UnsupportedKeyTypeError

logger = logging.getLogger(__name__)

ED25519_PUBLIC_KEY_LENGTH = 32
X25519_PUBLIC_KEY_LENGTH = 32


class KeyScheme(str, Enum):
    """Public key schemes known to this library."""
    ED25519 = "Ed25519"
    X25519 = "X25519"


@dataclass(frozen=True)
class SigningPublicKey:
    """A public key usable for signature verification."""
    raw: bytes
    scheme: KeyScheme = KeyScheme.ED25519


@dataclass(frozen=True)
class AgreementPublicKey:
    """A public key usable for key agreement only."""
    raw: bytes
    scheme: KeyScheme = KeyScheme.X25519


PublicKey = Union[SigningPublicKey, AgreementPublicKey]


def _decode_ed25519_jwk(key_object: Dict[str, Any]) -> bytes:
    try:
        key = jwk.JWK(**key_object)
        public_key = key.get_op_key("verify")
    except (
        jwk.InvalidJWKValue, jwk.InvalidJWKType, jwk.InvalidJWKOperation, jwk.InvalidJWKUsage, ValueError, TypeError
    ) as e:
        raise KeyEncodingError(f"Failed to load Ed25519 JWK: {e}") from e
    if not isinstance(public_key, ed25519.Ed25519PublicKey):
        raise UnsupportedKeyTypeError("only ed25519 keys are currently supported")
    return public_key.public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )


# (kty, crv) of a JWK to its scheme; read-only
JWK_SCHEMES: Mapping[Tuple[str, str], KeyScheme] = MappingProxyType({
    ("OKP", "Ed25519"): KeyScheme.ED25519,
})

VERIFICATION_DECODERS: Mapping[KeyScheme, Callable[[Dict[str, Any]], bytes]] = MappingProxyType({
    KeyScheme.ED25519: _decode_ed25519_jwk,
})

KEY_TYPE_BY_SCHEME: Mapping[KeyScheme, str] = MappingProxyType({
    KeyScheme.ED25519: KEY_TYPE_ED25519,
    KeyScheme.X25519: KEY_TYPE_X25519_KEY_AGREEMENT,
})


def encode_verification_key(raw_public_key: bytes) -> Dict[str, Any]:
    """
    Encodes a raw Ed25519 public key as a public JWK dictionary.

    Raises:
        KeyEncodingError: If the bytes are not a valid Ed25519 public key.
    """
    if len(raw_public_key) != ED25519_PUBLIC_KEY_LENGTH:
        raise KeyEncodingError(
            f"Ed25519 public key has incorrect length: {len(raw_public_key)} bytes "
            f"(expected {ED25519_PUBLIC_KEY_LENGTH})."
        )
    try:
        public_key = ed25519.Ed25519PublicKey.from_public_bytes(raw_public_key)
        return jwk.JWK.from_pyca(public_key).export_public(as_dict=True)
    except ValueError as e:
        raise KeyEncodingError(f"Failed to encode Ed25519 public key: {e}") from e


def decode_verification_key(key_object: Dict[str, Any]) -> Tuple[KeyScheme, bytes]:
    """
    Decodes a public JWK dictionary into its scheme and raw key bytes.

    Raises:
        UnsupportedKeyTypeError: If the JWK's (kty, crv) is not a supported scheme.
        KeyEncodingError: If the JWK cannot be loaded.
    """
    if not isinstance(key_object, dict) or not key_object:
        raise KeyEncodingError("no key found in jwk")
    kty, crv = key_object.get("kty"), key_object.get("crv")
    scheme = JWK_SCHEMES.get((kty, crv))
    if scheme is None:
        raise UnsupportedKeyTypeError(f"unsupported key type: {kty}/{crv}")
    raw = VERIFICATION_DECODERS[scheme](key_object)
    logger.debug(f"Decoded {scheme.value} verification key")
    return scheme, raw


def encode_agreement_key(raw_public_key: bytes) -> str:
    """Encodes raw key agreement bytes as a Base58 (bitcoin alphabet) string."""
    if not raw_public_key:
        raise KeyEncodingError("empty key agreement public key")
    return base58.b58encode(raw_public_key).decode("ascii")


def decode_agreement_key(encoded: str) -> bytes:
    """
    Decodes a Base58 key agreement string.

    Raises:
        NoKeyPresentError: If the string is empty.
        KeyEncodingError: If the string is not valid Base58.
    """
    if not encoded:
        raise NoKeyPresentError()
    try:
        return base58.b58decode(encoded)
    except ValueError as e:
        raise KeyEncodingError(f"Failed to decode Base58 key '{encoded}': {e}") from e


def private_key_to_jwk(private_key: ed25519.Ed25519PrivateKey) -> Dict[str, Any]:
    """Exports an Ed25519 private key as a private JWK dictionary."""
    return jwk.JWK.from_pyca(private_key).export_private(as_dict=True)


def signing_jwk(private_key: Union[ed25519.Ed25519PrivateKey, Dict[str, Any]]) -> jwk.JWK:
    """
    Loads an Ed25519 private key, given as a key object or private JWK
    dictionary, into a jwcrypto key.

    Raises:
        KeyEncodingError: If the key is not a private Ed25519 key.
    """
    if isinstance(private_key, ed25519.Ed25519PrivateKey):
        return jwk.JWK.from_pyca(private_key)
    if not isinstance(private_key, dict) or "d" not in private_key:
        raise KeyEncodingError("Private JWK must contain 'd' component.")
    if (private_key.get("kty"), private_key.get("crv")) != ("OKP", "Ed25519"):
        raise UnsupportedKeyTypeError("JWK must be of type OKP with curve Ed25519.")
    try:
        return jwk.JWK(**private_key)
    except (jwk.InvalidJWKValue, jwk.InvalidJWKType, ValueError, TypeError) as e:
        raise KeyEncodingError(f"Failed to load private JWK: {e}") from e


def verification_jwk(public_key: Union[PublicKey, ed25519.Ed25519PublicKey, bytes]) -> jwk.JWK:
    """
    Loads an Ed25519 public key into a jwcrypto key for signature checks.

    Raises:
        UnsupportedKeyTypeError: If an agreement key is passed.
        KeyEncodingError: If the input is not bytes-like or not an Ed25519 public key.
    """
    if isinstance(public_key, AgreementPublicKey):
        raise UnsupportedKeyTypeError("key agreement keys cannot verify signatures")
    if isinstance(public_key, ed25519.Ed25519PublicKey):
        return jwk.JWK.from_pyca(public_key)
    if isinstance(public_key, SigningPublicKey):
        if public_key.scheme is not KeyScheme.ED25519:
            raise UnsupportedKeyTypeError(f"unsupported signing scheme: {public_key.scheme.value}")
        public_key = public_key.raw
    if not isinstance(public_key, (bytes, bytearray, memoryview)):
        raise KeyEncodingError(f"unsupported public key input: {type(public_key).__name__}")
    return jwk.JWK(**encode_verification_key(bytes(public_key)))
