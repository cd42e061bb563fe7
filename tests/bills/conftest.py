from typing import Any, Callable, Dict, List, Union
from unittest.mock import AsyncMock

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from aremxyplug.core.dependency_container import DependencyContainer
from aremxyplug.settings import Settings

ProviderReply = Union[Dict[str, Any], httpx.Response, Exception]


class FakeProviderAPI:
    """httpx MockTransport handler standing in for VTpass and the VTU API.

    Replies are registered per URL path suffix ("/pay", "/data/", "/topup/").
    """

    def __init__(self) -> None:
        self.replies: Dict[str, ProviderReply] = {}
        self.requests: List[httpx.Request] = []

    def reply(self, path_suffix: str, reply: ProviderReply) -> None:
        self.replies[path_suffix] = reply

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for suffix, reply in self.replies.items():
            if request.url.path.endswith(suffix):
                if isinstance(reply, Exception):
                    raise reply
                if isinstance(reply, httpx.Response):
                    return reply
                return httpx.Response(200, json=reply)
        return httpx.Response(404, json={"detail": "not found"})


@pytest.fixture
def provider_api() -> FakeProviderAPI:
    return FakeProviderAPI()


@pytest.fixture
def make_bills_client(mocker, provider_api) -> Callable[..., TestClient]:
    """Builds a TestClient whose app runs against in-memory SQLite and the fake provider API."""

    def _make(reject_duplicates: bool = False) -> TestClient:
        if reject_duplicates:
            mocker.patch.dict("os.environ", {"REJECT_DUPLICATE_REQUESTS": "true"})

        async def initialize_for_tests(app_settings: Settings) -> DependencyContainer:
            # Created inside the app's event loop so aiosqlite connections stay on one loop
            engine = create_async_engine("sqlite+aiosqlite:///:memory:")
            async with engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)
            return DependencyContainer(
                settings=app_settings,
                http_client=httpx.AsyncClient(transport=httpx.MockTransport(provider_api)),
                db_session_factory=async_sessionmaker(engine, expire_on_commit=False),
            )

        mocker.patch("aremxyplug.main.initialize_app_dependencies", side_effect=initialize_for_tests)
        mocker.patch("aremxyplug.main.close_db_engine", new_callable=AsyncMock)

        from aremxyplug.main import app

        return TestClient(app)

    return _make
