# mailio_did/vc_utils.py

"""Utilities for Verifiable Credential signing and verification."""

import json
import logging
import datetime
from typing import Any, Dict, Union

import rfc8785
from cryptography.hazmat.primitives.asymmetric import ed25519
from jwcrypto import jws
from pydantic import ValidationError

from .constants import (
    DEFAULT_PROOF_TYPE,
    DEFAULT_PROOF_PURPOSE,
    JWS_ALGORITHM,
    VC_JSONLD_CONTEXT_V1,
    VC_TYPES,
)
from .errors import ProofEmptyError, ProofMissingError, SignatureError, VcError
from .key_encoding import PublicKey, signing_jwk, verification_jwk
from .schemas import Proof, VerifiableCredential

logger = logging.getLogger(__name__)


def _now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def new_credential(issuer: str) -> VerifiableCredential:
    """Creates an unsigned credential issued now by ``issuer``."""
    return VerifiableCredential(
        context=[VC_JSONLD_CONTEXT_V1],
        type=list(VC_TYPES),
        issuer=issuer,
        issuanceDate=_now(),
    )


def credential_payload(credential: VerifiableCredential) -> bytes:
    """
    Returns the deterministic encoding of a credential without its proof:
    the RFC 8785 canonical JSON of its wire form.
    """
    data = credential.model_dump(mode="json", by_alias=True)
    data.pop("proof", None)
    try:
        return rfc8785.dumps(data)
    except (ValueError, TypeError) as e:
        raise VcError(f"Failed to canonicalize credential: {e}") from e


def sign_credential(
    credential: VerifiableCredential,
    private_key: Union[ed25519.Ed25519PrivateKey, Dict[str, Any]],
) -> VerifiableCredential:
    """
    Signs the credential and attaches the proof to it.

    The compact JWS (EdDSA) over :func:`credential_payload` becomes
    ``proof.jws``. The proof's verificationMethod is the issuer DID itself.
    A proof already present is replaced.

    Args:
        credential: The credential to seal. It is updated in place.
        private_key: Ed25519 private key or its private JWK dictionary.

    Returns:
        The same credential, now carrying a proof.

    Raises:
        KeyEncodingError: If the private key cannot be loaded.
        VcError: If signing fails.
    """
    key = signing_jwk(private_key)
    payload = credential_payload(credential)

    try:
        token = jws.JWS(payload)
        token.add_signature(key, None, json.dumps({"alg": JWS_ALGORITHM}))
        signature = token.serialize(compact=True)
    except (jws.InvalidJWSOperation, ValueError) as e:
        logger.exception("JWS signing failed.")
        raise VcError(f"Cryptographic signing failed: {e}") from e

    credential.proof = Proof(
        type=DEFAULT_PROOF_TYPE,
        created=_now(),
        proofPurpose=DEFAULT_PROOF_PURPOSE,
        verificationMethod=credential.issuer,
        jws=signature,
    )
    logger.info(f"Signed credential issued by {credential.issuer}")
    return credential


def verify_credential(
    credential: VerifiableCredential,
    public_key: Union[PublicKey, ed25519.Ed25519PublicKey, bytes],
) -> bool:
    """
    Verifies the proof of a credential against the signer's public key.

    The signed payload is decoded back into a credential and its issuer must
    equal the credential's issuer. The credential itself is not modified.

    Returns:
        True if the signature is valid and the issuer matches, False if the
        signature is valid but was made over another issuer's credential.

    Raises:
        ProofMissingError: If the credential has no proof.
        ProofEmptyError: If the proof carries no jws.
        SignatureError: If the jws is malformed or its signature is invalid.
        VcError: If the signed payload is not a credential.
    """
    if credential.proof is None:
        raise ProofMissingError()
    if not credential.proof.jws:
        raise ProofEmptyError()

    key = verification_jwk(public_key)
    token = jws.JWS()
    try:
        token.deserialize(credential.proof.jws)
        token.verify(key, alg=JWS_ALGORITHM)
    except jws.InvalidJWSObject as e:
        raise SignatureError(f"Invalid jws: {e}") from e
    except jws.InvalidJWSSignature as e:
        logger.debug(f"Signature check failed for credential issued by {credential.issuer}")
        raise SignatureError() from e

    try:
        recovered = VerifiableCredential.model_validate_json(token.payload)
    except ValidationError as e:
        raise VcError(f"Signed payload is not a credential: {e}") from e

    if recovered.issuer != credential.issuer:
        logger.warning(f"Issuer mismatch: proof signed for {recovered.issuer}, credential names {credential.issuer}")
        return False

    logger.info(f"Verified credential issued by {credential.issuer}")
    return True
