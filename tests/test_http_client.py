"""
Transport wrapper tests: headers, options, request encoding.
"""
import asyncio
import base64
import json
from typing import List

import httpx
import pytest

from bitbucket_cloud.sources.client.bitbucket.bitbucket import (
    BitbucketRESTClientViaBasicAuth,
    BitbucketRESTClientViaBearer,
)
from bitbucket_cloud.sources.client.http.http_client import HTTPClient
from bitbucket_cloud.sources.client.http.http_request import HTTPRequest


def recording_transport(seen: List[httpx.Request], status_code: int = 200, **response_kwargs) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(status_code, **response_kwargs)
    return httpx.MockTransport(handler)


@pytest.mark.asyncio
class TestHTTPClient:

    async def test_basic_auth_and_accept_headers(self):
        seen: List[httpx.Request] = []
        client = BitbucketRESTClientViaBasicAuth(
            "https://api.bitbucket.org/2.0/", "alice", "s3cret", transport=recording_transport(seen, json={})
        )

        await client.execute(HTTPRequest(url=client.get_base_url() + "/user"))
        await client.close()

        expected = base64.b64encode(b"alice:s3cret").decode("ascii")
        assert seen[0].headers["Authorization"] == f"Basic {expected}"
        assert seen[0].headers["Accept"] == "application/json"
        assert str(seen[0].url) == "https://api.bitbucket.org/2.0/user"

    async def test_bearer_auth_header(self):
        seen: List[httpx.Request] = []
        client = BitbucketRESTClientViaBearer(
            "https://api.bitbucket.org/2.0", "workspace-token", transport=recording_transport(seen, json={})
        )

        await client.execute(HTTPRequest(url=client.get_base_url() + "/user"))
        await client.close()

        assert seen[0].headers["Authorization"] == "Bearer workspace-token"

    async def test_path_params_and_query_params(self):
        seen: List[httpx.Request] = []
        client = HTTPClient("t", transport=recording_transport(seen, json={}))

        await client.execute(HTTPRequest(
            url="https://example.test/repositories/{workspace}/{repo_slug}",
            path_params={"workspace": "{abc}", "repo_slug": "repo"},
            query_params={"sort": "-created_on"},
        ))
        await client.close()

        assert seen[0].url.path == "/repositories/{abc}/repo"
        assert seen[0].url.params["sort"] == "-created_on"

    async def test_non_success_status_is_returned_not_raised(self):
        seen: List[httpx.Request] = []
        client = HTTPClient("t", transport=recording_transport(seen, status_code=404, text="missing"))

        response = await client.execute(HTTPRequest(url="https://example.test/nothing"))
        await client.close()

        assert response.status == 404
        assert not response.is_success
        assert response.text() == "missing"

    async def test_json_body(self):
        seen: List[httpx.Request] = []
        client = HTTPClient("t", transport=recording_transport(seen, status_code=201, json={"ok": True}))

        response = await client.execute(HTTPRequest(
            url="https://example.test/items", method="POST", body={"key": "A"}
        ))
        await client.close()

        assert json.loads(seen[0].content) == {"key": "A"}
        assert response.is_json
        assert response.json() == {"ok": True}

    async def test_form_is_sent_as_multipart_without_filenames(self):
        seen: List[httpx.Request] = []
        client = HTTPClient("t", transport=recording_transport(seen, status_code=201))

        await client.execute(HTTPRequest(
            url="https://example.test/src",
            method="POST",
            form=[("docs/readme.md", "hello"), ("message", "msg")],
        ))
        await client.close()

        assert seen[0].headers["Content-Type"].startswith("multipart/form-data")
        body = seen[0].content.decode("utf-8")
        assert 'name="docs/readme.md"' in body
        assert "hello" in body
        assert 'name="message"' in body
        assert "filename=" not in body

    async def test_repeated_form_names_are_sent_as_separate_parts(self):
        seen: List[httpx.Request] = []
        client = HTTPClient("t", transport=recording_transport(seen, status_code=201))

        await client.execute(HTTPRequest(
            url="https://example.test/src",
            method="POST",
            form=[("message", "file body"), ("message", "commit message")],
        ))
        await client.close()

        body = seen[0].content.decode("utf-8")
        assert body.count('name="message"') == 2
        assert body.index("file body") < body.index("commit message")

    async def test_in_flight_request_survives_extend(self):
        started = asyncio.Event()
        release = asyncio.Event()

        async def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/slow":
                started.set()
                await release.wait()
            return httpx.Response(200, json={"path": request.url.path})

        client = HTTPClient("t", transport=httpx.MockTransport(handler))
        slow = asyncio.ensure_future(client.execute(HTTPRequest(url="https://example.test/slow")))
        await started.wait()

        client.extend(headers={"X-Trace": "1"})
        fast = await client.execute(HTTPRequest(url="https://example.test/fast"))
        release.set()
        slow_response = await slow
        await client.close()

        assert fast.json() == {"path": "/fast"}
        assert slow_response.json() == {"path": "/slow"}

    async def test_extend_merges_headers_and_options(self):
        seen: List[httpx.Request] = []
        client = HTTPClient("t", transport=recording_transport(seen, json={}))

        await client.execute(HTTPRequest(url="https://example.test/a"))
        first_client = client.client

        client.extend(headers={"X-Trace": "1"}, timeout=5.0)
        await client.execute(HTTPRequest(url="https://example.test/b"))

        assert client.client is not first_client
        # The replaced client may still serve in-flight requests until close()
        assert not first_client.is_closed
        assert client.timeout == 5.0
        assert client.client.timeout.read == 5.0
        assert seen[1].headers["X-Trace"] == "1"
        # Existing defaults survive the merge
        assert seen[1].headers["Authorization"] == "Bearer t"
        assert seen[1].headers["Accept"] == "application/json"
        await client.close()
        assert first_client.is_closed

    async def test_request_headers_take_precedence(self):
        seen: List[httpx.Request] = []
        client = HTTPClient("t", transport=recording_transport(seen, text="raw"))

        await client.execute(HTTPRequest(url="https://example.test/raw", headers={"Accept": "text/plain"}))
        await client.close()

        assert seen[0].headers["Accept"] == "text/plain"

    async def test_async_context_manager_closes_client(self):
        client = HTTPClient("t", transport=recording_transport([], json={}))

        async with client:
            assert client.client is not None
            inner = client.client

        assert client.client is None
        assert inner.is_closed

