import logging
from typing import Any, Dict, List, Optional

import httpx  # type: ignore

from bitbucket_cloud.sources.client.http.http_request import HTTPRequest
from bitbucket_cloud.sources.client.http.http_response import HTTPResponse
from bitbucket_cloud.sources.client.iclient import IClient


class HTTPClient(IClient):
    """
    HTTP client with authentication and JSON defaults.

    Features:
    - Automatic Authorization header injection
    - `Accept: application/json` by default
    - Default options can be extended after construction (timeout, proxy, headers, ...)

    Retries, timeouts and cancellation are left to httpx; this class adds none of its own.

    Args:
        token: Authentication token
        token_type: Token type for Authorization header (default: "Bearer")
        timeout: Request timeout in seconds (default: 30.0)
        follow_redirects: Whether to follow HTTP redirects (default: True)
        transport: Optional httpx transport (e.g. httpx.MockTransport in tests)
        logger: Optional logger instance
    """
    def __init__(
        self,
        token: str,
        token_type: str = "Bearer",
        timeout: float = 30.0,
        follow_redirects: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[logging.Logger] = None
    ) -> None:
        self.headers = {
            "Authorization": f"{token_type} {token}",
            "Accept": "application/json",
        }
        self.timeout = timeout
        self.follow_redirects = follow_redirects
        self.transport = transport
        self.options: Dict[str, Any] = {}
        self.logger = logger or logging.getLogger(__name__)
        self.client: Optional[httpx.AsyncClient] = None
        self._retired_clients: List[httpx.AsyncClient] = []

    def get_client(self) -> "HTTPClient":
        """Get the client"""
        return self

    def extend(self, headers: Optional[Dict[str, str]] = None, **options: Any) -> None:
        """Merge additional default options into this client.

        Options are any httpx.AsyncClient keyword (proxy, verify, timeout, ...).
        Headers are merged key by key; other options replace earlier values.
        The underlying httpx client is rebuilt on the next request. The replaced
        client stays open for requests already in flight and is closed by close().

        Args:
            headers: Extra default headers
            options: Extra httpx.AsyncClient options
        """
        if headers:
            self.headers = {**self.headers, **headers}
        if "timeout" in options:
            self.timeout = options.pop("timeout")
        if "follow_redirects" in options:
            self.follow_redirects = options.pop("follow_redirects")
        if "transport" in options:
            self.transport = options.pop("transport")
        self.options = {**self.options, **options}

        if self.client is not None:
            self._retired_clients.append(self.client)
            self.client = None

    async def _ensure_client(self) -> httpx.AsyncClient:
        """
        Ensure client is created and available.
        """
        if self.client is None:
            self.client = httpx.AsyncClient(
                transport=self.transport,
                timeout=self.timeout,
                follow_redirects=self.follow_redirects,
                **self.options
            )
        return self.client

    async def execute(self, request: HTTPRequest, **kwargs: Any) -> HTTPResponse:
        """Execute an HTTP request
        Args:
            request: The HTTP request to execute
            kwargs: Additional keyword arguments to pass to the request
        Returns:
            A HTTPResponse object containing the response from the server.
            Non-2xx statuses are returned, not raised; network errors propagate.
        """
        url = request.formatted_url()
        client = await self._ensure_client()

        # Merge client headers with request headers (request headers take precedence)
        merged_headers = {**self.headers, **request.headers}
        request_kwargs: Dict[str, Any] = {
            "params": request.query_params,
            "headers": merged_headers,
            **kwargs
        }

        if request.form is not None:
            # (None, value) tuples give plain multipart fields without a filename
            request_kwargs["files"] = [(name, (None, value)) for name, value in request.form]
        elif isinstance(request.body, dict):
            content_type = request.headers.get("Content-Type", "").lower()
            if "application/x-www-form-urlencoded" in content_type:
                request_kwargs["data"] = request.body
            else:
                request_kwargs["json"] = request.body
        elif isinstance(request.body, bytes):
            request_kwargs["content"] = request.body

        self.logger.debug(f"{request.method} {url}")
        response = await client.request(request.method, url, **request_kwargs)
        return HTTPResponse(response)

    async def close(self) -> None:
        """Close the client"""
        while self._retired_clients:
            await self._retired_clients.pop().aclose()
        if self.client:
            await self.client.aclose()
            self.client = None

    async def __aenter__(self) -> "HTTPClient":
        """Async context manager entry"""
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit"""
        await self.close()
