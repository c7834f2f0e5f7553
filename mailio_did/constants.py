# mailio_did/constants.py
"""Shared constants for mailio-did."""

MAILIO_SECRET_PREFIX: str = "MAILIO_SECRET_"
AUTH_ENDPOINT_ENV: str = "MAILIO_AUTH_SERVICE_ENDPOINT"
MESSAGE_ENDPOINT_ENV: str = "MAILIO_MESSAGE_SERVICE_ENDPOINT"
DEFAULT_AUTH_SERVICE_ENDPOINT: str = "https://auth.mailio.com"
DEFAULT_MESSAGE_SERVICE_ENDPOINT: str = "https://msg.mailio.com"

DID_SCHEME: str = "did"
MAILIO_DID_METHOD: str = "mailio"

CTX_DID_V1: str = "https://www.w3.org/ns/did/v1"
CTX_SEC_ED25519_2020_V1: str = "https://w3id.org/security/suites/ed25519-2020/v1"
CTX_SEC_X25519_2019_V1: str = "https://w3id.org/security/suites/x25519-2019/v1"
DID_DOCUMENT_CONTEXT: tuple = (CTX_DID_V1, CTX_SEC_ED25519_2020_V1, CTX_SEC_X25519_2019_V1)

KEY_TYPE_ED25519: str = "Ed25519VerificationKey2020"
KEY_TYPE_X25519_KEY_AGREEMENT: str = "X25519KeyAgreementKey2019"
PUBLIC_KEY_JWK_TYPE: str = "JsonWebKey2020"

MASTER_KEY_FRAGMENT: str = "master"
AUTH_SERVICE_FRAGMENT: str = "auth"
DIDCOMM_SERVICE_FRAGMENT: str = "didcomm"
AUTHENTICATION_DID_TYPE: str = "MailioDIDAuth"
MESSAGING_DID_TYPE: str = "DIDCommMessaging"
DIDCOMM_ACCEPT: tuple = ("didcomm/v2", "didcomm/aip2;env=rfc587")

VC_JSONLD_CONTEXT_V1: str = "https://www.w3.org/2018/credentials/v1"
VC_TYPES: tuple = ("VerifiableCredential", "MailioAppCredential")
DEFAULT_PROOF_TYPE: str = KEY_TYPE_ED25519
DEFAULT_PROOF_PURPOSE: str = "assertionMethod"
JWS_ALGORITHM: str = "EdDSA"

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
