from __future__ import annotations

import pytest

from cardsync.config import BalenaApiToken
from tests.helpers.jose import generate_keypair


@pytest.fixture(scope="session")
def key_material() -> tuple[bytes, bytes]:
    return generate_keypair()


@pytest.fixture(scope="session")
def other_key_material() -> tuple[bytes, bytes]:
    return generate_keypair()


@pytest.fixture
def balena_token(key_material: tuple[bytes, bytes]) -> BalenaApiToken:
    private_pem, public_pem = key_material
    return BalenaApiToken(api="api-token", public_key=public_pem, private_key=private_pem)
