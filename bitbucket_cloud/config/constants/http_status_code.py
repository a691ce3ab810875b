from enum import Enum


class HttpStatusCode(Enum):
    """Constants for HTTP status codes"""

    # 2xx Success
    OK = 200
    SUCCESS = 200  # Alias for OK
    CREATED = 201
    NO_CONTENT = 204

    # 3xx Redirection
    MULTIPLE_CHOICES = 300

    # 4xx Client Errors
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    CONFLICT = 409
