# mailio_did/errors.py
"""Custom exception classes for mailio-did."""

class MailioDidError(Exception):
    """Base class for library errors."""
    def __init__(self, message: str, error_code: str = "MailioDidError"):
        self.message = message
        self.error_code = error_code
        super().__init__(f"[{error_code}] {message}")

class ConfigurationError(MailioDidError):
    """Error related to configuration or environment setup."""
    def __init__(self, message: str):
        super().__init__(message, error_code="ConfigurationError")

class InvalidInputError(MailioDidError):
    """Error for invalid input data."""
    def __init__(self, message: str):
        super().__init__(message, error_code="InvalidInput")

class DidError(MailioDidError):
    """Error related to DID operations."""
    def __init__(self, message: str, error_code: str = "DidError"):
        super().__init__(message, error_code=error_code)

class MalformedIdentifierError(DidError, ValueError):
    """The string does not follow the did:<method>:<value>[#fragment] grammar."""
    def __init__(self, message: str):
        super().__init__(message, error_code="MalformedIdentifier")

class MissingMasterKeyError(DidError):
    """Identifier derivation was attempted without a master signing key."""
    def __init__(self, message: str = "master key required"):
        super().__init__(message, error_code="MissingMasterKey")

class KeyNotFoundError(DidError):
    """Error when a required cryptographic key is not found."""
    def __init__(self, message: str):
        super().__init__(message, error_code="NotFound")

class KeyEncodingError(DidError):
    """A key could not be converted to or from its wire encoding."""
    def __init__(self, message: str, error_code: str = "KeyEncodingFailure"):
        super().__init__(message, error_code=error_code)

class UnsupportedKeyTypeError(KeyEncodingError):
    """The declared key type is outside the supported schemes."""
    def __init__(self, message: str):
        super().__init__(message, error_code="UnsupportedKeyType")

class NoKeyPresentError(KeyEncodingError):
    """A key agreement entry carries no public key."""
    def __init__(self, message: str = "no public key specified in keyAgreement"):
        super().__init__(message, error_code="NoKeyPresent")

class VcError(MailioDidError):
    """Error related to Verifiable Credential operations."""
    def __init__(self, message: str, error_code: str = "VcError"):
        super().__init__(message, error_code=error_code)

class ProofMissingError(VcError):
    """Verification was requested on a credential without a proof."""
    def __init__(self, message: str = "Credential has no proof"):
        super().__init__(message, error_code="ProofMissing")

class ProofEmptyError(VcError):
    """The proof carries an empty signature payload."""
    def __init__(self, message: str = "Proof jws is empty"):
        super().__init__(message, error_code="ProofEmpty")

class SignatureError(VcError):
    """Error related to cryptographic signature failure."""
    def __init__(self, message: str = "Signature verification failed"):
        super().__init__(message, error_code="InvalidSignature")
