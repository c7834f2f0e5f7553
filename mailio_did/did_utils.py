# mailio_did/did_utils.py
"""Utilities for DID parsing, key material and mailio address derivation."""

import os
import json
import base64
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ed25519, x25519
from pydantic_core import core_schema

from .constants import (
    MAILIO_SECRET_PREFIX,
    AUTH_ENDPOINT_ENV,
    MESSAGE_ENDPOINT_ENV,
    DEFAULT_AUTH_SERVICE_ENDPOINT,
    DEFAULT_MESSAGE_SERVICE_ENDPOINT,
    DID_SCHEME,
    MAILIO_DID_METHOD,
    KEY_TYPE_ED25519,
    KEY_TYPE_X25519_KEY_AGREEMENT,
)
from .errors import (
    ConfigurationError,
    KeyEncodingError,
    KeyNotFoundError,
    MalformedIdentifierError,
    MissingMasterKeyError,
)

logger = logging.getLogger(__name__)


class DID:
    """
    A parsed decentralized identifier.

    Holds the original string next to its method, method-specific value and
    fragment. Instances are immutable and serialize as their raw string in
    pydantic models.
    """

    __slots__ = ("_raw", "_method", "_value", "_fragment")

    def __init__(self, raw: str, method: str = "", value: str = "", fragment: str = ""):
        object.__setattr__(self, "_raw", raw)
        object.__setattr__(self, "_method", method)
        object.__setattr__(self, "_value", value)
        object.__setattr__(self, "_fragment", fragment)

    def __setattr__(self, name, value):
        raise AttributeError("DID is immutable")

    @property
    def raw(self) -> str:
        return self._raw

    @property
    def method(self) -> str:
        return self._method

    @property
    def protocol(self) -> str:
        """Alias of ``method``."""
        return self._method

    @property
    def value(self) -> str:
        return self._value

    @property
    def fragment(self) -> str:
        return self._fragment

    @property
    def is_fragment_only(self) -> bool:
        return self._raw.startswith("#")

    def __str__(self) -> str:
        return self._raw

    def __repr__(self) -> str:
        return f"DID({self._raw!r})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, DID):
            return NotImplemented
        return (self._raw, self._method, self._value, self._fragment) == (
            other._raw, other._method, other._value, other._fragment
        )

    def __hash__(self) -> int:
        return hash(self._raw)

    def __reduce__(self):
        return (DID, (self._raw, self._method, self._value, self._fragment))

    @classmethod
    def _coerce(cls, value: Any) -> "DID":
        if isinstance(value, DID):
            return value
        if isinstance(value, str):
            return parse_did(value)
        raise MalformedIdentifierError(f"DID must be a string, got {type(value).__name__}")

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type, handler):
        return core_schema.no_info_plain_validator_function(
            cls._coerce,
            serialization=core_schema.plain_serializer_function_ser_schema(str),
        )


def parse_did(s: str) -> DID:
    """
    Parses a ``did:<method>:<value>[#fragment]`` string.

    A string starting with ``#`` is a fragment-only identifier: method and value
    stay empty and the fragment keeps its leading ``#``.

    Raises:
        MalformedIdentifierError: If the string does not have exactly three
                                  colon separated segments or does not start
                                  with ``did``.
    """
    if not isinstance(s, str):
        raise MalformedIdentifierError("DID must be a string")

    if s.startswith("#"):
        return DID(raw=s, fragment=s)

    core, sep, fragment = s.partition("#")
    segments = core.split(":", 2)
    if len(segments) != 3:
        raise MalformedIdentifierError(f"invalid did: must contain three parts: {segments}")
    if segments[0] != DID_SCHEME:
        raise MalformedIdentifierError(f"invalid did: first segment must be '{DID_SCHEME}'")

    return DID(raw=s, method=segments[1], value=segments[2], fragment=fragment if sep else "")


def format_did(method: str, value: str) -> str:
    """Returns the canonical ``did:<method>:<value>`` string."""
    return f"{DID_SCHEME}:{method}:{value}"


@dataclass(frozen=True)
class Key:
    """A raw public key and its declared type tag."""
    public_key: bytes
    type: str = KEY_TYPE_ED25519


@dataclass
class KeyMaterial:
    """The public key set of a mailio subject."""
    master_sign_key: Optional[Key] = None
    master_agreement_key: Optional[Key] = None
    verification_keys: List[Key] = field(default_factory=list)
    authentication_keys: List[Key] = field(default_factory=list)

    def key_type(self) -> str:
        self._require_master_key()
        return self.master_sign_key.type

    def address(self) -> str:
        """
        Mailio address of the master signing key: the last 40 hex characters of
        SHA-256 over the base64 encoding of the public key, prefixed with ``0x``.
        """
        self._require_master_key()
        b64_encoded = base64.b64encode(self.master_sign_key.public_key)
        hasher = hashes.Hash(hashes.SHA256())
        hasher.update(b64_encoded)
        digest = hasher.finalize().hex()
        return "0x" + digest[-40:]

    def did_string(self) -> str:
        return format_did(MAILIO_DID_METHOD, self.address())

    def identifier(self) -> DID:
        """
        Derives ``did:mailio:<address>`` and runs it through the parser.

        Raises:
            MissingMasterKeyError: If no master signing key is set.
        """
        did = parse_did(self.did_string())
        logger.debug(f"Derived identifier {did} from master key")
        return did

    def _require_master_key(self) -> None:
        if self.master_sign_key is None:
            raise MissingMasterKeyError()


def _raw_public_bytes(public_key) -> bytes:
    return public_key.public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )


def generate_ed25519_keypair() -> Tuple[ed25519.Ed25519PrivateKey, bytes]:
    """Generates an Ed25519 signing key, returning the private key and raw public bytes."""
    private_key = ed25519.Ed25519PrivateKey.generate()
    return private_key, _raw_public_bytes(private_key.public_key())


def generate_x25519_keypair() -> Tuple[x25519.X25519PrivateKey, bytes]:
    """Generates an X25519 agreement key, returning the private key and raw public bytes."""
    private_key = x25519.X25519PrivateKey.generate()
    return private_key, _raw_public_bytes(private_key.public_key())


def generate_key_material() -> Tuple[KeyMaterial, ed25519.Ed25519PrivateKey, x25519.X25519PrivateKey]:
    """
    Generates a master signing key and a master agreement key.

    Returns:
        A tuple containing:
        - The KeyMaterial holding both public keys.
        - The Ed25519 private signing key.
        - The X25519 private agreement key.
    """
    sign_private, sign_public = generate_ed25519_keypair()
    agree_private, agree_public = generate_x25519_keypair()
    key_material = KeyMaterial(
        master_sign_key=Key(public_key=sign_public, type=KEY_TYPE_ED25519),
        master_agreement_key=Key(public_key=agree_public, type=KEY_TYPE_X25519_KEY_AGREEMENT),
    )
    logger.info(f"Generated new key material for {key_material.did_string()}")
    return key_material, sign_private, agree_private


def sanitize_did_for_env(did: str) -> str:
    """
    Sanitizes a DID string to create a valid environment variable name.
    Rule: Replaces ':' and '.' with '_'.
    Example: did:mailio:0xabc... -> did_mailio_0xabc...
    """
    if not isinstance(did, str):
        raise TypeError("DID must be a string")
    return did.replace(":", "_").replace(".", "_")


def get_private_jwk_from_env(did: str) -> Dict[str, Any]:
    """
    Retrieves the private Ed25519 key (in JWK JSON format) for a given DID
    from an environment variable.

    Raises:
        KeyNotFoundError: If the environment variable is not set.
        KeyEncodingError: If the content is not a private OKP JWK.
        ConfigurationError: If the environment variable name cannot be constructed.
    """
    try:
        env_var_name = f"{MAILIO_SECRET_PREFIX}{sanitize_did_for_env(did)}"
    except TypeError as e:
        raise ConfigurationError(f"Failed to construct environment variable name for DID {did}: {e}") from e
    logger.info(f"Attempting to retrieve secret from env var: {env_var_name}")

    jwk_str = os.getenv(env_var_name)
    if jwk_str is None:
        raise KeyNotFoundError(f"Secret environment variable '{env_var_name}' not found for DID '{did}'.")

    try:
        private_jwk = json.loads(jwk_str)
    except json.JSONDecodeError as e:
        raise KeyEncodingError(f"Failed to parse JSON from environment variable '{env_var_name}'.") from e
    if not isinstance(private_jwk, dict) or private_jwk.get("kty") != "OKP" or "d" not in private_jwk:
        raise KeyEncodingError(f"Value in '{env_var_name}' is not a private OKP JWK.")
    return private_jwk


def get_service_endpoints() -> Tuple[str, str]:
    """Returns the (authentication, messaging) endpoint templates, stripped of trailing slashes."""
    auth = os.getenv(AUTH_ENDPOINT_ENV, DEFAULT_AUTH_SERVICE_ENDPOINT).rstrip("/")
    msg = os.getenv(MESSAGE_ENDPOINT_ENV, DEFAULT_MESSAGE_SERVICE_ENDPOINT).rstrip("/")
    if not auth or not msg:
        raise ConfigurationError(f"{AUTH_ENDPOINT_ENV} and {MESSAGE_ENDPOINT_ENV} must not be empty")
    return auth, msg
