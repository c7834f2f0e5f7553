#!/usr/bin/env python3
"""Main entry point for the mailio DID/VC tool."""

import argparse
import json
import logging
import sys
from typing import Any, Dict, Optional, Union

import base58
from cryptography.hazmat.primitives import serialization
from pydantic import ValidationError

from .constants import EXIT_FAILURE, EXIT_SUCCESS, KEY_TYPE_ED25519, KEY_TYPE_X25519_KEY_AGREEMENT
from .did_utils import (
    Key,
    KeyMaterial,
    generate_key_material,
    get_private_jwk_from_env,
    get_service_endpoints,
)
from .document import build_document, resolve_verification_key
from .errors import InvalidInputError, MailioDidError
from .key_encoding import decode_agreement_key, decode_verification_key, private_key_to_jwk
from .schemas import (
    CredentialSubject,
    Document,
    ErrorOutput,
    GenerateOutput,
    InputSchema,
    VerifiableCredential,
    VerifyOutput,
)
from .vc_utils import new_credential, sign_credential, verify_credential

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application."""
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="mailio DID/VC tool")
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose logging')

    subparsers = parser.add_subparsers(dest='command', required=True, help='Command to execute')

    gen_parser = subparsers.add_parser('generate', help='Generate key material and its DID document')
    gen_parser.add_argument('--operator-key', help='File containing the hosting service public key (JWK)')
    gen_parser.add_argument('--output', '-o', help='Output file for writing DID document and keys')

    doc_parser = subparsers.add_parser('document', help='Build a DID document from public keys')
    doc_parser.add_argument('--master-key', required=True, help='File containing the master public key (JWK)')
    doc_parser.add_argument('--agreement-key', help='Base58 X25519 public key')
    doc_parser.add_argument('--operator-key', required=True,
                            help='File containing the hosting service public key (JWK)')
    doc_parser.add_argument('--output', '-o', help='Output file for the DID document')

    issue_parser = subparsers.add_parser('issue', help='Issue and sign a verifiable credential')
    issue_parser.add_argument('--issuer', required=True, help='DID of the issuer')
    issue_parser.add_argument('--subject', required=True, help='DID of the credential subject')
    issue_parser.add_argument('--origin', help='Origin of the credential subject')
    issue_parser.add_argument('--key', help='File containing the issuer private key (JWK); '
                                            'defaults to the MAILIO_SECRET_ variable of the issuer')
    issue_parser.add_argument('--output', '-o', help='Output file for the signed credential')

    verify_parser = subparsers.add_parser('verify', help='Verify a signed credential')
    verify_parser.add_argument('credential', help='File containing the signed credential')
    key_group = verify_parser.add_mutually_exclusive_group(required=True)
    key_group.add_argument('--public-key', help='File containing the issuer public key (JWK)')
    key_group.add_argument('--document', help="File containing the issuer's DID document")

    return parser.parse_args(argv)


def load_json_file(file_path: str) -> Dict[str, Any]:
    """Load and parse a JSON file."""
    try:
        with open(file_path, 'r') as f:
            return json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.error(f"Failed to load JSON from {file_path}: {e}")
        raise InvalidInputError(f"Failed to load JSON from {file_path}: {e}") from e


def write_json_file(data: Dict[str, Any], file_path: str) -> None:
    """Write data to a JSON file."""
    try:
        with open(file_path, 'w') as f:
            json.dump(data, f, indent=2)
        logger.info(f"Data written to {file_path}")
    except OSError as e:
        logger.error(f"Failed to write to {file_path}: {e}")
        raise InvalidInputError(f"Failed to write to {file_path}: {e}") from e


def load_public_key(jwk_input: Union[str, Dict[str, Any]]) -> bytes:
    """Loads raw Ed25519 public key bytes from a JWK file path or dictionary."""
    key_object = load_json_file(jwk_input) if isinstance(jwk_input, str) else jwk_input
    _, raw = decode_verification_key(key_object)
    return raw


def _validate(model, data: Dict[str, Any]):
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise InvalidInputError(f"Invalid {model.__name__}: {e}") from e


def handle_generate(operator_key: Optional[Union[str, Dict[str, Any]]] = None) -> Dict[str, Any]:
    """Generate key material and build its DID document."""
    key_material, sign_private, agree_private = generate_key_material()
    if operator_key:
        operator_public = load_public_key(operator_key)
    else:
        operator_public = key_material.master_sign_key.public_key

    auth_endpoint, msg_endpoint = get_service_endpoints()
    document = build_document(key_material, operator_public, auth_endpoint, msg_endpoint)
    agreement_raw = agree_private.private_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PrivateFormat.Raw,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return GenerateOutput(
        did=str(document.id),
        document=document.to_dict(),
        privateKey=private_key_to_jwk(sign_private),
        agreementPrivateKey=base58.b58encode(agreement_raw).decode("ascii"),
    ).model_dump()


def handle_document(
    master_key: Union[str, Dict[str, Any]],
    operator_key: Union[str, Dict[str, Any]],
    agreement_key: Optional[str] = None,
) -> Dict[str, Any]:
    """Build a DID document from existing public keys."""
    key_material = KeyMaterial(master_sign_key=Key(public_key=load_public_key(master_key), type=KEY_TYPE_ED25519))
    if agreement_key:
        key_material.master_agreement_key = Key(
            public_key=decode_agreement_key(agreement_key),
            type=KEY_TYPE_X25519_KEY_AGREEMENT,
        )
    auth_endpoint, msg_endpoint = get_service_endpoints()
    return build_document(key_material, load_public_key(operator_key), auth_endpoint, msg_endpoint).to_dict()


def handle_issue(
    issuer: str,
    subject: str,
    key: Optional[Union[str, Dict[str, Any]]] = None,
    origin: Optional[str] = None,
) -> Dict[str, Any]:
    """Issue a credential for the subject and sign it with the issuer key."""
    if key is None:
        private_jwk = get_private_jwk_from_env(issuer)
    elif isinstance(key, str):
        private_jwk = load_json_file(key)
    else:
        private_jwk = key

    credential = new_credential(issuer)
    credential.credentialSubject = CredentialSubject(id=subject, origin=origin)
    return sign_credential(credential, private_jwk).to_dict()


def handle_verify(
    credential_input: Union[str, Dict[str, Any]],
    public_key: Optional[Union[str, Dict[str, Any]]] = None,
    document: Optional[Union[str, Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """
    Verify a signed credential.

    The key is either given directly or taken from the issuer's document,
    where the proof is checked against the issuer's master key.
    """
    data = load_json_file(credential_input) if isinstance(credential_input, str) else credential_input
    credential = _validate(VerifiableCredential, data)

    if public_key is not None:
        verifier_key = load_public_key(public_key)
    elif document is not None:
        doc_data = load_json_file(document) if isinstance(document, str) else document
        did_document = _validate(Document, doc_data)
        verifier_key = resolve_verification_key(did_document, f"{credential.issuer}#master")
    else:
        raise InvalidInputError("Either a public key or an issuer document is required for verify")

    verified = verify_credential(credential, verifier_key)
    return VerifyOutput(verified=verified, issuer=credential.issuer if verified else None).model_dump()


def run(*args, **kwargs) -> Dict[str, Any]:
    """
    In-process entry point taking ``func_name`` and ``func_input_data``,
    either as keyword arguments or as a dict in the first positional argument.

    Raises:
        InvalidInputError: If the payload is missing or malformed.
        MailioDidError: If the requested operation fails.
    """
    if args and isinstance(args[0], dict):
        payload = args[0]
    else:
        payload = kwargs
    if 'func_name' not in payload:
        raise InvalidInputError("Missing 'func_name' parameter in input payload")

    request = _validate(InputSchema, payload)
    params = request.func_input_data
    logger.info(f"Executing function: {request.func_name}")

    if request.func_name == 'generate':
        result = handle_generate(params.get('operator_key'))
    elif request.func_name == 'document':
        if 'master_key' not in params or 'operator_key' not in params:
            raise InvalidInputError("Missing 'master_key' or 'operator_key' parameter for document")
        result = handle_document(params['master_key'], params['operator_key'], params.get('agreement_key'))
    elif request.func_name == 'issue':
        if not params.get('issuer') or not params.get('subject'):
            raise InvalidInputError("Missing 'issuer' or 'subject' parameter for issue")
        result = handle_issue(params['issuer'], params['subject'], params.get('key'), params.get('origin'))
    else:
        if not params.get('credential'):
            raise InvalidInputError("Missing 'credential' parameter for verify")
        return handle_verify(params['credential'], params.get('public_key'), params.get('document'))

    output_file = params.get('output')
    if output_file:
        write_json_file(result, output_file)
    return result


def main(argv=None) -> int:
    """Command-line entry point."""
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        if args.command == 'generate':
            result = handle_generate(args.operator_key)
        elif args.command == 'document':
            result = handle_document(args.master_key, args.operator_key, args.agreement_key)
        elif args.command == 'issue':
            result = handle_issue(args.issuer, args.subject, args.key, args.origin)
        else:
            result = handle_verify(args.credential, args.public_key, args.document)

        if getattr(args, 'output', None):
            write_json_file(result, args.output)

        print(json.dumps(result, indent=2))
        return EXIT_SUCCESS if result.get('verified', True) else EXIT_FAILURE

    except MailioDidError as e:
        logger.error(f"{args.command} failed: {e}")
        print(ErrorOutput(error=e.error_code, message=e.message).model_dump_json(indent=2))
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
