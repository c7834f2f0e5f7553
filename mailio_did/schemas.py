# mailio_did/schemas.py
"""Pydantic models for DID documents, credentials and tool output."""

import datetime
from typing import Any, ClassVar, Dict, FrozenSet, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_serializer

from .did_utils import DID


class WireModel(BaseModel):
    """Base for wire objects: None fields are dropped, listed fields are dropped when empty."""
    model_config = ConfigDict(populate_by_name=True)

    omit_if_empty: ClassVar[FrozenSet[str]] = frozenset()

    @model_serializer(mode="wrap")
    def serialize_wire(self, handler):
        data = handler(self)
        return {
            key: value for key, value in data.items()
            if value is not None and not (key in self.omit_if_empty and not value)
        }


class VerificationMethod(WireModel):
    """Represents a DID Document Verification Method entry."""
    id: Optional[str] = None
    type: Optional[str] = None
    controller: Optional[str] = None
    publicKeyJwk: Optional[Dict[str, Any]] = None


class KeyAgreement(WireModel):
    """A key agreement entry; publicKeyMultibase holds raw Base58 key bytes."""
    id: Optional[str] = None
    type: Optional[str] = None
    controller: Optional[str] = None
    publicKeyMultibase: Optional[str] = None
    publicKeyJwk: Optional[Dict[str, Any]] = None


class Service(WireModel):
    id: str
    type: str
    serviceEndpoint: str
    accept: List[str] = Field(default_factory=list)
    routingKeys: List[str] = Field(default_factory=list)

    omit_if_empty: ClassVar[FrozenSet[str]] = frozenset({"accept", "routingKeys"})


# A bare string references a verification method, an object embeds one.
AuthenticationEntry = Union[str, VerificationMethod]


class Document(WireModel):
    """A DID Document."""
    context: List[str] = Field(..., alias="@context")
    id: DID
    alsoKnownAs: List[str] = Field(default_factory=list)
    authentication: List[AuthenticationEntry] = Field(default_factory=list)
    verificationMethod: List[VerificationMethod] = Field(default_factory=list)
    keyAgreement: List[KeyAgreement] = Field(default_factory=list)
    service: List[Service] = Field(default_factory=list)

    omit_if_empty: ClassVar[FrozenSet[str]] = frozenset(
        {"alsoKnownAs", "authentication", "verificationMethod", "keyAgreement", "service"}
    )

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class AuthorizedApplication(WireModel):
    id: str = Field(..., description="DID of the target application.")
    domains: List[str] = Field(..., description="Domains of the authorized application.")
    approvalDate: datetime.datetime
    userPermissions: List[str] = Field(default_factory=list)

    omit_if_empty: ClassVar[FrozenSet[str]] = frozenset({"userPermissions"})


class CredentialSubject(WireModel):
    id: str = ""
    origin: Optional[str] = None
    authorizedApplication: Optional[AuthorizedApplication] = None


class CredentialStatus(WireModel):
    id: str
    type: str


class Proof(WireModel):
    """A detached proof; jws carries the compact JWS over the credential."""
    type: str
    created: datetime.datetime
    proofPurpose: str
    verificationMethod: str
    challenge: Optional[str] = None
    domain: Optional[str] = None
    jws: str = ""


class VerifiableCredential(WireModel):
    context: List[str] = Field(..., alias="@context")
    id: Optional[str] = None
    type: List[str]
    issuer: str
    issuanceDate: datetime.datetime
    credentialSubject: CredentialSubject = Field(default_factory=CredentialSubject)
    proof: Optional[Proof] = None
    credentialStatus: Optional[CredentialStatus] = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class VerifiablePresentation(WireModel):
    """A holder's presentation of credentials. Data model only."""
    context: List[str] = Field(..., alias="@context")
    id: str
    type: str
    holder: str
    verifiableCredential: List[VerifiableCredential] = Field(default_factory=list)
    proof: Optional[Proof] = None


class InputSchema(BaseModel):
    func_name: Literal["generate", "document", "issue", "verify"]

    func_input_data: Dict[str, Any] = Field(default_factory=dict)


class GenerateOutput(BaseModel):
    """Output data for the 'generate' command."""
    did: str = Field(..., description="The generated did:mailio string.")
    document: Dict[str, Any] = Field(..., description="The DID document built from the generated keys.")
    privateKey: Dict[str, Any] = Field(..., description="The master signing key in JWK format. Handle with care.")
    agreementPrivateKey: str = Field(..., description="Base58 raw X25519 private key. Handle with care.")


class VerifyOutput(BaseModel):
    """Output data for the 'verify' command."""
    verified: bool = Field(..., description="True if the proof is valid and bound to the issuer.")
    issuer: Optional[str] = Field(None, description="The issuer of the credential, if verification succeeded.")


class ErrorOutput(BaseModel):
    """Standardized error output format."""
    error: str = Field(..., description="A short error code or category.")
    message: str = Field(..., description="A human-readable description of the error.")
