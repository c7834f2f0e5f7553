"""Configuration for pytest"""

import pytest
import logging

from mailio_did.did_utils import generate_key_material, generate_ed25519_keypair


@pytest.fixture(autouse=True)
def setup_logging():
    logging.basicConfig(
        level=logging.DEBUG,
        format='%(levelname)s - %(name)s - %(message)s'
    )

    logging.getLogger('jwcrypto').setLevel(logging.WARNING)

    return logging.getLogger()


@pytest.fixture
def key_material():
    """Subject key material with master signing and agreement keys"""
    material, _, _ = generate_key_material()
    return material


@pytest.fixture
def operator_public_key():
    """Raw public key of the service hosting the document"""
    _, public = generate_ed25519_keypair()
    return public

