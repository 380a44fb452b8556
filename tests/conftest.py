from __future__ import annotations

import asyncio
import json

import pytest

from y8_bridge import Y8AsyncClient, Y8Settings

AUTH_JSON = json.dumps(
    {
        "status": "connected",
        "authResponse": {
            "access_token": "token-1",
            "token_type": "bearer",
            "expires_in": 3600,
            "details": {
                "pid": "pid-1",
                "nickname": "Nick",
                "first_name": "Ann",
                "dob": "2000-1-2",
                "gender": "female",
                "language": "en",
                "locale": "en_US",
                "level": 3,
                "trust_details": {"email": "a@b.c", "mobile": True},
                "avatars": {"thumb_url": "http://img/t.png"},
                "risk": {"login": {"risk": "low", "real_ip": "1.2.3.4"}},
            },
        },
    }
)


class FakeSdk:
    """Records what the bridge sends; responses are delivered by the test."""

    def __init__(self) -> None:
        self.inits: list[tuple[str, str]] = []
        self.calls: list[tuple[int, str, str]] = []

    def init(self, app_id: str, ads_id: str) -> None:
        self.inits.append((app_id, ads_id))

    def call(self, call_id: int, request: str, payload: str) -> None:
        self.calls.append((call_id, request, payload))

    @property
    def last_id(self) -> int:
        return self.calls[-1][0]


async def settle() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.fixture
def sdk() -> FakeSdk:
    return FakeSdk()


@pytest.fixture
def settings() -> Y8Settings:
    return Y8Settings(app_id="app-1", ads_id="ads-1", _env_file=None)


@pytest.fixture
def client(sdk: FakeSdk, settings: Y8Settings) -> Y8AsyncClient:
    client = Y8AsyncClient(sdk, settings)
    client.router.on_ready()
    return client


@pytest.fixture
def logged_in(client: Y8AsyncClient) -> Y8AsyncClient:
    client.router.on_auth_response(AUTH_JSON)
    return client
