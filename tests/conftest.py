from __future__ import annotations

import httpx
import pytest
import pytest_asyncio

from mdsclient.common.config import Config
from mdsclient.infra.storage.mds_client import MdsStorageClient
from tests.infra.fake_mds import FakeMdsService

AUTH_HEADER = "Basic c2FuZGJveC10bXA6c2VjcmV0"


@pytest.fixture
def config() -> Config:
    return Config(
        host="storage-int.test",
        upload_port=1111,
        read_port=80,
        auth_header=AUTH_HEADER,
    )


@pytest.fixture
def fake_service() -> FakeMdsService:
    return FakeMdsService(auth_header=AUTH_HEADER)


@pytest_asyncio.fixture
async def http_client(fake_service: FakeMdsService):
    async with httpx.AsyncClient(transport=fake_service.transport()) as client:
        yield client


@pytest_asyncio.fixture
async def client(config: Config, http_client: httpx.AsyncClient):
    async with MdsStorageClient(config, http_client=http_client) as storage:
        yield storage
