import asyncio

import pytest

from showroom.realtime import ChangeFeed, ChangeFeedSubscriber
from showroom.storage import Database


class FakeVerifier:
    """Accepts a single username/password pair."""

    def __init__(self, username="admin", password="s3cret"):
        self.accepted = (username, password)
        self.calls = []

    async def verify(self, username, password):
        self.calls.append(username)
        return (username, password) == self.accepted


@pytest.fixture
def feed():
    return ChangeFeed()


@pytest.fixture
def db(feed):
    return Database("sqlite:///:memory:", feed=feed)


@pytest.fixture
def subscriber(feed):
    return ChangeFeedSubscriber(feed, max_retries=1, base_delay=0.01, max_delay=0.05)


@pytest.fixture
def verifier():
    return FakeVerifier()


@pytest.fixture
def make_vehicle():
    def factory(**overrides):
        fields = {
            "make": "Toyota",
            "model": "Corolla",
            "year": 2024,
            "price": 3200000,
            "image": "https://images.example.com/corolla.jpg",
            "mileage": 0,
            "transmission": "automatic",
            "fuel_type": "gasoline",
        }
        fields.update(overrides)
        return fields

    return factory


@pytest.fixture
def wait_until():
    async def waiter(condition, timeout=1.0):
        deadline = asyncio.get_running_loop().time() + timeout
        while not condition():
            if asyncio.get_running_loop().time() > deadline:
                break
            await asyncio.sleep(0.01)
        assert condition()

    return waiter
