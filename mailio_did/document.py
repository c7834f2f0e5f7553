# mailio_did/document.py
"""Building mailio DID documents and resolving keys out of them."""

import logging
from typing import List

from .constants import (
    DID_DOCUMENT_CONTEXT,
    PUBLIC_KEY_JWK_TYPE,
    KEY_TYPE_ED25519,
    MASTER_KEY_FRAGMENT,
    AUTH_SERVICE_FRAGMENT,
    DIDCOMM_SERVICE_FRAGMENT,
    AUTHENTICATION_DID_TYPE,
    MESSAGING_DID_TYPE,
    DIDCOMM_ACCEPT,
)
from .did_utils import Key, KeyMaterial
from .errors import DidError, KeyNotFoundError
from .key_encoding import (
    AgreementPublicKey,
    KeyScheme,
    KEY_TYPE_BY_SCHEME,
    SigningPublicKey,
    decode_agreement_key,
    decode_verification_key,
    encode_agreement_key,
    encode_verification_key,
)
from .schemas import AuthenticationEntry, Document, KeyAgreement, Service, VerificationMethod

logger = logging.getLogger(__name__)


def _verification_method(key: Key, controller: str, vm_id=None) -> VerificationMethod:
    return VerificationMethod(
        id=vm_id,
        type=PUBLIC_KEY_JWK_TYPE,
        controller=controller,
        publicKeyJwk=encode_verification_key(key.public_key),
    )


def _check_unique_ids(methods: List[VerificationMethod]) -> None:
    seen = set()
    for vm in methods:
        if vm.id in seen:
            raise DidError(f"duplicate verification method id: {vm.id}", error_code="DuplicateVerificationMethod")
        seen.add(vm.id)


def build_document(
    key_material: KeyMaterial,
    master_verifier_public_key: bytes,
    auth_service_endpoint: str,
    message_service_endpoint: str,
) -> Document:
    """
    Assembles the DID document of a mailio subject.

    The subject identifier is derived from the master signing key. Service ids
    are namespaced under the identifier derived from
    ``master_verifier_public_key``, the key of the service hosting the document.

    Args:
        key_material: Public keys of the subject.
        master_verifier_public_key: Raw Ed25519 public key of the hosting service.
        auth_service_endpoint: Base URL of the authentication service.
        message_service_endpoint: Base URL of the DIDComm messaging service.

    Returns:
        The built Document.

    Raises:
        MissingMasterKeyError: If either master signing key is absent.
        KeyEncodingError: If any key cannot be encoded.
        DidError: If two verification methods end up with the same id.
    """
    did = key_material.identifier()
    operator_did = KeyMaterial(
        master_sign_key=Key(public_key=master_verifier_public_key, type=KEY_TYPE_ED25519)
    ).identifier()
    subject = str(did)

    verification_methods = [
        _verification_method(key_material.master_sign_key, subject, f"{subject}#{MASTER_KEY_FRAGMENT}")
    ]

    key_agreements = []
    if key_material.master_agreement_key is not None:
        # the agreement entry is identified by the subject itself, not a fragment
        key_agreements.append(KeyAgreement(
            id=subject,
            type=KEY_TYPE_BY_SCHEME[KeyScheme.X25519],
            controller=subject,
            publicKeyMultibase=encode_agreement_key(key_material.master_agreement_key.public_key),
        ))

    for i, key in enumerate(key_material.verification_keys):
        verification_methods.append(_verification_method(key, subject, f"#{i + 1}"))

    _check_unique_ids(verification_methods)

    authentication: List[AuthenticationEntry] = [f"{subject}#{MASTER_KEY_FRAGMENT}"]
    for key in key_material.authentication_keys:
        authentication.append(_verification_method(key, subject))

    services = [
        Service(
            id=f"{operator_did}#{AUTH_SERVICE_FRAGMENT}",
            type=AUTHENTICATION_DID_TYPE,
            serviceEndpoint=f"{auth_service_endpoint}/{did.value}",
        ),
        Service(
            id=f"{operator_did}#{DIDCOMM_SERVICE_FRAGMENT}",
            type=MESSAGING_DID_TYPE,
            serviceEndpoint=f"{message_service_endpoint}/{did.value}",
            accept=list(DIDCOMM_ACCEPT),
        ),
    ]

    document = Document(
        context=list(DID_DOCUMENT_CONTEXT),
        id=did,
        authentication=authentication,
        verificationMethod=verification_methods,
        keyAgreement=key_agreements,
        service=services,
    )
    logger.info(f"Built DID document for {subject} with {len(verification_methods)} verification method(s)")
    return document


def verification_method_public_key(vm: VerificationMethod) -> SigningPublicKey:
    """
    Decodes the public key embedded in a verification method.

    The scheme comes from the (kty, crv) of the embedded JWK; the declared
    ``type`` of the method is not consulted.

    Raises:
        UnsupportedKeyTypeError: If the JWK key type is unsupported.
        KeyEncodingError: If no key is embedded or it cannot be decoded.
    """
    scheme, raw = decode_verification_key(vm.publicKeyJwk)
    return SigningPublicKey(raw=raw, scheme=scheme)


def resolve_verification_key(document: Document, vm_id: str = "") -> SigningPublicKey:
    """
    Returns the public key of the verification method with the given id.

    An empty ``vm_id`` matches the first verification method of the document.

    Raises:
        KeyNotFoundError: If no verification method matches.
        UnsupportedKeyTypeError: If the matched key type is unsupported.
    """
    for vm in document.verificationMethod:
        if vm_id == "" or vm.id == vm_id:
            logger.debug(f"Resolving verification key {vm.id} of {document.id}")
            return verification_method_public_key(vm)
    raise KeyNotFoundError(f"no key found by that ID: {vm_id!r}")


def resolve_agreement_key(key_agreement: KeyAgreement) -> AgreementPublicKey:
    """
    Decodes the Base58 public key of a key agreement entry.

    Raises:
        NoKeyPresentError: If the entry has no publicKeyMultibase.
        KeyEncodingError: If the value is not valid Base58.
    """
    raw = decode_agreement_key(key_agreement.publicKeyMultibase or "")
    return AgreementPublicKey(raw=raw, scheme=KeyScheme.X25519)
