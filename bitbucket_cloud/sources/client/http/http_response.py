from typing import Any

import httpx  # type: ignore

from bitbucket_cloud.config.constants.http_status_code import HttpStatusCode


class HTTPResponse:
    """HTTP response
    Args:
        response: The httpx response to wrap
    """
    def __init__(self, response: httpx.Response) -> None:
        self.response = response

    @property
    def status(self) -> int:
        """Status code of the response"""
        return self.response.status_code

    @property
    def headers(self) -> httpx.Headers:
        """Response headers (case-insensitive)"""
        return self.response.headers

    @property
    def url(self) -> str:
        return str(self.response.url)

    @property
    def is_success(self) -> bool:
        return HttpStatusCode.OK.value <= self.status < HttpStatusCode.MULTIPLE_CHOICES.value

    @property
    def is_json(self) -> bool:
        """Whether the response declares a JSON body"""
        content_type = self.response.headers.get("Content-Type", "")
        return "application/json" in content_type.lower()

    def json(self) -> Any:
        """Decode the body as JSON"""
        return self.response.json()

    def text(self) -> str:
        """Decode the body as text"""
        return self.response.text
