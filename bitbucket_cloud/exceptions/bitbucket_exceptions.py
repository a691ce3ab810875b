from typing import Any, Dict, Optional

from bitbucket_cloud.config.constants.http_status_code import HttpStatusCode


class BitbucketError(Exception):
    """Base exception for Bitbucket client errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class BitbucketConfigurationError(BitbucketError):
    """Raised when the client cannot be built from the given configuration"""



class BitbucketRequestError(BitbucketError):
    """Raised when a request fails at the transport level or with a non-2xx status

    Transport failures have no status code; the original httpx exception is
    available as ``__cause__``.
    """

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            {"method": method, "url": url, "status_code": status_code, "body": body},
        )
        self.method = method
        self.url = url
        self.status_code = status_code
        self.body = body

    @property
    def is_not_found(self) -> bool:
        return self.status_code == HttpStatusCode.NOT_FOUND.value
