"""Domain value objects with validation.

Value objects that provide validation at construction time,
ensuring invalid states are unrepresentable.
"""

import re
from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlsplit


class HttpMethod(str, Enum):
    """HTTP methods a deferred request may use."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @classmethod
    def parse(cls, value: str) -> "HttpMethod":
        """Parse a method name, accepting any letter case.

        Args:
            value: Method name such as "patch" or "PATCH".

        Returns:
            The matching HttpMethod.

        Raises:
            ValueError: If the method is not one of the allowed values.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"method must be a string, got {type(value).__name__}")
        try:
            return cls(value.upper())
        except ValueError:
            allowed = ", ".join(m.value for m in cls)
            raise ValueError(
                f"Unsupported method '{value}' (expected one of: {allowed})"
            ) from None


# No whitespace or control characters anywhere in a request target
_INVALID_URL_CHARS = re.compile(r"[\s\x00-\x1f\x7f]")


@dataclass(frozen=True)
class RequestUrl:
    """Validated target of a deferred request.

    Accepts absolute http(s) URLs with a host, and root-relative paths
    ("/api/service-users/5") that are resolved against the server base URL
    at replay time.

    Attributes:
        value: The URL string as supplied.

    Raises:
        ValueError: If the URL is empty or malformed.
    """

    value: str

    def __post_init__(self) -> None:
        """Validate URL shape."""
        if not isinstance(self.value, str) or not self.value:
            raise ValueError("url cannot be empty")
        if _INVALID_URL_CHARS.search(self.value):
            raise ValueError(f"Invalid url '{self.value}': contains whitespace")

        parts = urlsplit(self.value)
        if parts.scheme or parts.netloc:
            if parts.scheme not in ("http", "https"):
                raise ValueError(
                    f"Invalid url '{self.value}': scheme must be http or https"
                )
            if not parts.hostname:
                raise ValueError(f"Invalid url '{self.value}': missing host")
            try:
                parts.port  # raises ValueError for a non-numeric or out-of-range port
            except ValueError as e:
                raise ValueError(f"Invalid url '{self.value}': {e}") from None
            return

        if not self.value.startswith("/") or self.value.startswith("//"):
            raise ValueError(
                f"Invalid url '{self.value}': expected an absolute URL "
                "or a path starting with '/'"
            )

    @property
    def is_relative(self) -> bool:
        """True when the URL is a root-relative path."""
        return self.value.startswith("/")

    def __str__(self) -> str:
        return self.value


def validate_user_id(user_id: object) -> int:
    """Validate a user identifier.

    Args:
        user_id: Candidate identifier.

    Returns:
        The identifier as an int.

    Raises:
        ValueError: If user_id is not a positive integer.
    """
    # bool is an int subclass; True must not pass as user 1
    if isinstance(user_id, bool) or not isinstance(user_id, int):
        raise ValueError(f"userId must be a positive integer, got {user_id!r}")
    if user_id <= 0:
        raise ValueError(f"userId must be a positive integer, got {user_id}")
    return user_id
