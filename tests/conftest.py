import pytest

from zkwasm_client.credential import Credential
from zkwasm_client.player import Player
from tests.fake_service import FakeLedgerService

ADMIN_KEY = "11" * 32
PLAYER_KEY = "22" * 32

TOKEN_A = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
TOKEN_B = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"


@pytest.fixture
def service():
    return FakeLedgerService(admin_id=Credential(ADMIN_KEY).public_id)


@pytest.fixture
def admin(service):
    return Player(ADMIN_KEY, service=service, settle_timeout_seconds=1.0, poll_seconds=0)


@pytest.fixture
def player(service):
    return Player(PLAYER_KEY, service=service, settle_timeout_seconds=1.0, poll_seconds=0)


@pytest.fixture
def configured_admin(admin):
    """Admin account registered with tokens 0, 1 and market (0, 1)."""
    admin.register()
    admin.add_token(0, TOKEN_A)
    admin.add_token(1, TOKEN_B)
    admin.add_market(0, 1)
    return admin
