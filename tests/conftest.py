import pytest

from lpop.models import ExchangeParams, DAY_MS
from lpop.utils.keygen import generate_keypair
from lpop.utils.keystore import DeviceKeyManager, MemoryKeyStore


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance_days(self, days: float):
        self.now += int(days * DAY_MS)


@pytest.fixture(scope="session")
def recipient_keys():
    return generate_keypair()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def manager(clock):
    return DeviceKeyManager(store=MemoryKeyStore(), params=ExchangeParams(key_dir="unused"), clock=clock)
