"""End-to-end workflow against a live storage service.

Runs only when MDS_HOST, MDS_UPLOAD_PORT, MDS_READ_PORT and MDS_AUTH_HEADER
are set. The signed URL is fetched with ``requests`` to prove it works outside
this client.
"""

import os
import time
from urllib.parse import urlsplit

import pytest
import requests

from mdsclient.common.config import Config
from mdsclient.infra.storage.errors import ServiceError
from mdsclient.infra.storage.mds_client import MdsStorageClient
from mdsclient.infra.storage.ranges import ByteRange

pytestmark = [
    pytest.mark.live,
    pytest.mark.skipif(
        not os.getenv("MDS_HOST"), reason="MDS_HOST is not set; live service tests skipped"
    ),
]

NAMESPACE = os.getenv("MDS_TEST_NAMESPACE", "sandbox-tmp")
KEY_PREFIX = os.getenv("MDS_TEST_KEY_PREFIX", "mdsclient")

RANGE_START = 2
RANGE_END = 4


@pytest.mark.asyncio
async def test_full_workflow_with_signed_url_and_double_delete_requests():
    body = b"TESTBLOB"
    config = Config.from_environment()

    async with MdsStorageClient(config) as client:
        await client.ping()

        # --- upload and read back ---
        info = await client.upload(
            NAMESPACE, f"{KEY_PREFIX}-{time.time_ns()}", len(body), body
        )
        assert info.size == len(body)

        assert await client.get_file(NAMESPACE, info.key) == body
        assert await client.get_file(NAMESPACE, info.key, ByteRange(RANGE_START)) == (
            body[RANGE_START:]
        )

        # --- read URLs ---
        signed = await client.read_url(NAMESPACE, info.key, False)
        assert urlsplit(signed).netloc

        direct = await client.read_url(NAMESPACE, info.key, True)
        assert urlsplit(direct).netloc

        resp = requests.get(signed, timeout=30)
        resp.raise_for_status()
        assert resp.content == body

        assert await client.get_file(
            NAMESPACE, info.key, ByteRange(RANGE_START, RANGE_END)
        ) == body[RANGE_START : RANGE_END + 1]

        # --- delete twice ---
        await client.delete(NAMESPACE, info.key)

        with pytest.raises(ServiceError) as exc_info:
            await client.delete(NAMESPACE, info.key)
        assert exc_info.value.status == "404 Not Found"
