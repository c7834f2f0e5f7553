"""Unit tests for document module"""

import json
import pytest
from unittest.mock import patch

from jwcrypto import jwk

from mailio_did.constants import (
    CTX_DID_V1,
    CTX_SEC_ED25519_2020_V1,
    CTX_SEC_X25519_2019_V1,
    KEY_TYPE_ED25519,
    KEY_TYPE_X25519_KEY_AGREEMENT,
    PUBLIC_KEY_JWK_TYPE,
)
from mailio_did.did_utils import Key, KeyMaterial, generate_ed25519_keypair
from mailio_did.document import (
    build_document,
    resolve_agreement_key,
    resolve_verification_key,
)
from mailio_did.errors import (
    DidError,
    KeyEncodingError,
    KeyNotFoundError,
    MissingMasterKeyError,
    NoKeyPresentError,
    UnsupportedKeyTypeError,
)
from mailio_did.key_encoding import AgreementPublicKey, SigningPublicKey
from mailio_did.schemas import Document, KeyAgreement, VerificationMethod

AUTH_SERVICE_ENDPOINT = "https://auth.mailio.com"
MESSAGE_SERVICE_ENDPOINT = "https://msg.mailio.com"


@pytest.fixture
def document(key_material, operator_public_key):
    return build_document(key_material, operator_public_key, AUTH_SERVICE_ENDPOINT, MESSAGE_SERVICE_ENDPOINT)


def test_new_document(document, key_material):
    subject = key_material.did_string()

    assert document.id == key_material.identifier()
    assert document.context == [CTX_DID_V1, CTX_SEC_ED25519_2020_V1, CTX_SEC_X25519_2019_V1]
    assert document.verificationMethod[0].id == f"{subject}#master"
    assert document.verificationMethod[0].type == PUBLIC_KEY_JWK_TYPE
    assert document.authentication == [f"{subject}#master"]
    assert all(vm.controller == subject for vm in document.verificationMethod)


def test_key_agreement_entry(document, key_material):
    subject = key_material.did_string()

    assert len(document.keyAgreement) == 1
    agreement = document.keyAgreement[0]
    assert agreement.id == subject
    assert agreement.controller == subject
    assert agreement.type == KEY_TYPE_X25519_KEY_AGREEMENT


def test_services(document, key_material, operator_public_key):
    operator = KeyMaterial(master_sign_key=Key(public_key=operator_public_key)).did_string()
    address = key_material.address()

    auth, didcomm = document.service
    assert auth.id == f"{operator}#auth"
    assert auth.type == "MailioDIDAuth"
    assert auth.serviceEndpoint == f"{AUTH_SERVICE_ENDPOINT}/{address}"
    assert auth.accept == []
    assert didcomm.id == f"{operator}#didcomm"
    assert didcomm.type == "DIDCommMessaging"
    assert didcomm.serviceEndpoint == f"{MESSAGE_SERVICE_ENDPOINT}/{address}"
    assert didcomm.accept == ["didcomm/v2", "didcomm/aip2;env=rfc587"]


def test_auxiliary_keys(key_material, operator_public_key):
    aux_keys = [Key(public_key=generate_ed25519_keypair()[1]) for _ in range(2)]
    auth_key = Key(public_key=generate_ed25519_keypair()[1])
    key_material.verification_keys = aux_keys
    key_material.authentication_keys = [auth_key]

    doc = build_document(key_material, operator_public_key, AUTH_SERVICE_ENDPOINT, MESSAGE_SERVICE_ENDPOINT)

    assert [vm.id for vm in doc.verificationMethod][1:] == ["#1", "#2"]
    assert resolve_verification_key(doc, "#2").raw == aux_keys[1].public_key

    assert len(doc.authentication) == 2
    assert doc.authentication[0] == f"{doc.id}#master"
    inline = doc.authentication[1]
    assert isinstance(inline, VerificationMethod)
    assert inline.id is None
    assert inline.controller == str(doc.id)


def test_document_without_agreement_key(operator_public_key):
    key_material = KeyMaterial(master_sign_key=Key(public_key=generate_ed25519_keypair()[1]))
    doc = build_document(key_material, operator_public_key, AUTH_SERVICE_ENDPOINT, MESSAGE_SERVICE_ENDPOINT)

    assert doc.keyAgreement == []
    assert "keyAgreement" not in doc.to_dict()


def test_document_requires_master_key(operator_public_key):
    with pytest.raises(MissingMasterKeyError):
        build_document(KeyMaterial(), operator_public_key, AUTH_SERVICE_ENDPOINT, MESSAGE_SERVICE_ENDPOINT)


def test_document_aborts_on_bad_key(key_material, operator_public_key):
    key_material.verification_keys = [Key(public_key=b"\x00" * 5)]
    with pytest.raises(KeyEncodingError):
        build_document(key_material, operator_public_key, AUTH_SERVICE_ENDPOINT, MESSAGE_SERVICE_ENDPOINT)


@patch('mailio_did.document._verification_method')
def test_build_document_rejects_duplicate_ids(mock_vm, key_material, operator_public_key):
    # every method comes back with the same id
    mock_vm.side_effect = lambda key, controller, vm_id=None: VerificationMethod(id="#1", controller=controller)
    key_material.verification_keys = [Key(public_key=generate_ed25519_keypair()[1])]

    with pytest.raises(DidError) as excinfo:
        build_document(key_material, operator_public_key, AUTH_SERVICE_ENDPOINT, MESSAGE_SERVICE_ENDPOINT)
    assert excinfo.value.error_code == "DuplicateVerificationMethod"


def test_wire_form(document):
    data = json.loads(document.model_dump_json(by_alias=True))

    assert set(data) == {"@context", "id", "authentication", "verificationMethod", "keyAgreement", "service"}
    assert data["id"] == str(document.id)
    assert set(data["verificationMethod"][0]) == {"id", "type", "controller", "publicKeyJwk"}
    assert set(data["keyAgreement"][0]) == {"id", "type", "controller", "publicKeyMultibase"}
    assert "accept" not in data["service"][0]
    assert "routingKeys" not in data["service"][1]
    assert document.to_dict() == data


def test_wire_form_reparses(key_material, operator_public_key):
    key_material.authentication_keys = [Key(public_key=generate_ed25519_keypair()[1])]
    doc = build_document(key_material, operator_public_key, AUTH_SERVICE_ENDPOINT, MESSAGE_SERVICE_ENDPOINT)

    parsed = Document.model_validate(doc.to_dict())

    assert parsed.id == doc.id
    assert isinstance(parsed.authentication[0], str)
    assert isinstance(parsed.authentication[1], VerificationMethod)
    assert parsed.to_dict() == doc.to_dict()


def test_resolve_master_key(document, key_material):
    public_key = resolve_verification_key(document, key_material.did_string() + "#master")

    assert isinstance(public_key, SigningPublicKey)
    assert public_key.raw == key_material.master_sign_key.public_key


def test_resolve_first_key_with_empty_id(document, key_material):
    assert resolve_verification_key(document, "").raw == key_material.master_sign_key.public_key
    assert resolve_verification_key(document).raw == key_material.master_sign_key.public_key


def test_resolve_authentication_references(document, key_material):
    for auth in document.authentication:
        assert isinstance(auth, str)
        assert resolve_verification_key(document, auth).raw == key_material.master_sign_key.public_key


def test_resolve_unknown_id(document):
    with pytest.raises(KeyNotFoundError) as excinfo:
        resolve_verification_key(document, "#missing")
    assert excinfo.value.error_code == "NotFound"


def test_resolve_key_declared_as_ed25519_suite(document, key_material):
    document.verificationMethod[0].type = KEY_TYPE_ED25519

    public_key = resolve_verification_key(document, "")
    assert public_key.raw == key_material.master_sign_key.public_key


def test_resolve_ignores_declared_type(document, key_material):
    document.verificationMethod[0].type = "RsaVerificationKey2018"
    assert resolve_verification_key(document, "").raw == key_material.master_sign_key.public_key


def test_resolve_unsupported_jwk_key_type(document):
    document.verificationMethod[0].publicKeyJwk = jwk.JWK.generate(kty="EC", crv="P-256").export_public(as_dict=True)
    with pytest.raises(UnsupportedKeyTypeError):
        resolve_verification_key(document, "")


def test_resolve_agreement_key(document, key_material):
    public_key = resolve_agreement_key(document.keyAgreement[0])

    assert isinstance(public_key, AgreementPublicKey)
    assert public_key.raw == key_material.master_agreement_key.public_key


def test_resolve_agreement_key_empty():
    with pytest.raises(NoKeyPresentError):
        resolve_agreement_key(KeyAgreement(id="did:mailio:0x1", type=KEY_TYPE_X25519_KEY_AGREEMENT))
