"""Domain entities and value objects.

Core domain models representing the offline-sync and caching concepts of
CareUnity. These are pure Python dataclasses with no dependencies on
infrastructure.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from careunity.domain.exceptions import ValidationError
from careunity.domain.value_objects import HttpMethod, RequestUrl, validate_user_id


class SyncOperationStatus(str, Enum):
    """Lifecycle state of a deferred mutation.

    - PENDING: Queued, waiting for delivery
    - PROCESSING: Claimed by a replayer, delivery in flight
    - COMPLETED: Delivered successfully
    - ERROR: Delivery failed; see error_message
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"

    @classmethod
    def parse(cls, value: str) -> SyncOperationStatus:
        """Parse a status name.

        Raises:
            ValidationError: If value is not a known status.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(s.value for s in cls)
            raise ValidationError(
                f"Unknown status '{value}' (expected one of: {allowed})"
            ) from None


class ReplayErrorType(str, Enum):
    """Classification of replay failures.

    Allows callers to distinguish between different failure modes and respond
    appropriately (e.g., retry later vs. ask the user to resolve a conflict).
    """

    NONE = "none"  # No error occurred
    NETWORK_ERROR = "network_error"  # Server unreachable or timed out
    HTTP_ERROR = "http_error"  # Server answered with a non-2xx status
    CONFLICT = "conflict"  # Server reported a conflicting update (409)
    DATABASE_ERROR = "database_error"  # Problem with SQLite database
    UNKNOWN = "unknown"  # Unclassified error


def _now_ms() -> int:
    return int(datetime.now(UTC).timestamp() * 1000)


def _ms_to_iso(timestamp_ms: int) -> str:
    dt = datetime.fromtimestamp(timestamp_ms / 1000, tz=UTC)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class CreateSyncOperation:
    """Create-shaped input for a deferred mutation.

    Validates at construction time; nothing invalid ever reaches storage.

    Attributes:
        url: Absolute http(s) URL or root-relative path.
        method: One of GET, POST, PUT, PATCH, DELETE (any case accepted).
        user_id: Owning user, a positive integer.
        body: Optional serialized payload.
        headers: Optional header name to value mapping.
        entity_type: Optional domain object type (e.g., "care-plan").
        entity_id: Optional domain object id, stored as a string.

    Raises:
        ValidationError: If url, method, user_id or headers are invalid.
    """

    url: str
    method: HttpMethod
    user_id: int
    body: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    entity_type: str | None = None
    entity_id: str | None = None

    def __post_init__(self) -> None:
        """Validate and normalize fields."""
        try:
            RequestUrl(self.url)
            object.__setattr__(self, "method", HttpMethod.parse(self.method))
            validate_user_id(self.user_id)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        if self.body is not None and not isinstance(self.body, str):
            raise ValidationError("body must be a serialized string")

        headers = self.headers if self.headers is not None else {}
        if not isinstance(headers, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in headers.items()
        ):
            raise ValidationError("headers must map header names to string values")
        object.__setattr__(self, "headers", dict(headers))

        if self.entity_id is not None and not isinstance(self.entity_id, str):
            if isinstance(self.entity_id, bool) or not isinstance(self.entity_id, int):
                raise ValidationError("entityId must be a string or an integer")
            object.__setattr__(self, "entity_id", str(self.entity_id))

    @classmethod
    def from_dict(cls, data: dict[str, Any], user_id: int | None = None) -> CreateSyncOperation:
        """Build from the camelCase wire form.

        Non-string bodies are serialized to JSON, matching how the web client
        queues request data.

        Args:
            data: Mapping with url, method and optional body, headers,
                entityType, entityId, userId.
            user_id: Owning user; overrides any userId in data.

        Raises:
            ValidationError: If required keys are missing or values are invalid.
        """
        if not isinstance(data, dict):
            raise ValidationError("operation must be a JSON object")
        for key in ("url", "method"):
            if key not in data:
                raise ValidationError(f"operation is missing '{key}'")

        body = data.get("body")
        if body is not None and not isinstance(body, str):
            body = json.dumps(body)

        owner = user_id if user_id is not None else data.get("userId")
        if owner is None:
            raise ValidationError("operation is missing 'userId'")

        return cls(
            url=data["url"],
            method=data["method"],
            user_id=owner,
            body=body,
            headers=data.get("headers") or {},
            entity_type=data.get("entityType"),
            entity_id=data.get("entityId"),
        )


@dataclass(frozen=True)
class UpdateSyncOperation:
    """Status change requested for an existing operation.

    Attributes:
        status: Target status.
        error_message: Failure description; only valid with status=error.
        retries: Replacement retry count; must be >= 0 when given.

    Raises:
        ValidationError: If retries is negative or error_message is given
            for a non-error status.
    """

    status: SyncOperationStatus
    error_message: str | None = None
    retries: int | None = None

    def __post_init__(self) -> None:
        """Validate update fields."""
        object.__setattr__(self, "status", SyncOperationStatus.parse(self.status))
        if self.retries is not None:
            if isinstance(self.retries, bool) or not isinstance(self.retries, int):
                raise ValidationError("retries must be an integer")
            if self.retries < 0:
                raise ValidationError(f"retries cannot be negative, got {self.retries}")
        if self.error_message is not None and self.status != SyncOperationStatus.ERROR:
            raise ValidationError("errorMessage is only allowed with status 'error'")


@dataclass(frozen=True)
class SyncOperation:
    """A recorded mutation deferred for later delivery.

    Attributes:
        id: UUID assigned at creation; never changes.
        url: Request target.
        method: HTTP method.
        body: Serialized payload or None.
        headers: Header mapping (possibly empty).
        timestamp: Creation time in epoch milliseconds.
        retries: Number of failed delivery attempts.
        status: Lifecycle state.
        error_message: Failure text, set only in ERROR state.
        entity_type: Linked domain object type.
        entity_id: Linked domain object id.
        user_id: Owning user.
    """

    id: str
    url: str
    method: HttpMethod
    body: str | None
    headers: dict[str, str]
    timestamp: int
    retries: int
    status: SyncOperationStatus
    error_message: str | None
    entity_type: str | None
    entity_id: str | None
    user_id: int

    def __post_init__(self) -> None:
        """Validate record invariants."""
        if self.retries < 0:
            raise ValueError(f"retries cannot be negative, got {self.retries}")
        if self.error_message is not None and self.status != SyncOperationStatus.ERROR:
            raise ValueError("error_message is only set for operations in error state")

    @classmethod
    def new(
        cls,
        request: CreateSyncOperation,
        *,
        operation_id: str,
        timestamp: int | None = None,
    ) -> SyncOperation:
        """Create a fresh pending operation from a validated request.

        Args:
            request: Validated create input.
            operation_id: Newly generated unique id.
            timestamp: Creation time in ms (defaults to now).

        Returns:
            Operation with status=pending and retries=0.
        """
        return cls(
            id=operation_id,
            url=request.url,
            method=request.method,
            body=request.body,
            headers=dict(request.headers),
            timestamp=timestamp if timestamp is not None else _now_ms(),
            retries=0,
            status=SyncOperationStatus.PENDING,
            error_message=None,
            entity_type=request.entity_type,
            entity_id=request.entity_id,
            user_id=request.user_id,
        )

    def with_status(
        self,
        status: SyncOperationStatus,
        *,
        error_message: str | None = None,
        retries: int | None = None,
    ) -> SyncOperation:
        """Return a copy with a new status.

        Transition legality is checked by the caller (see core.sync.transitions).
        """
        return replace(
            self,
            status=status,
            error_message=error_message if status == SyncOperationStatus.ERROR else None,
            retries=self.retries if retries is None else retries,
        )

    def to_response(self) -> SyncOperationResponse:
        """Return the {id, status} acknowledgement for this operation."""
        return SyncOperationResponse(id=self.id, status=self.status)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase wire form."""
        data: dict[str, Any] = {
            "id": self.id,
            "url": self.url,
            "method": self.method.value,
            "body": self.body,
            "headers": dict(self.headers),
            "timestamp": self.timestamp,
            "retries": self.retries,
            "status": self.status.value,
            "entityType": self.entity_type,
            "entityId": self.entity_id,
            "userId": self.user_id,
        }
        if self.error_message is not None:
            data["errorMessage"] = self.error_message
        return data


@dataclass(frozen=True)
class SyncOperationResponse:
    """Acknowledgement returned for a created operation."""

    id: str
    status: SyncOperationStatus

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "status": self.status.value}


@dataclass(frozen=True)
class SyncStatusSummary:
    """Read-only aggregate over one user's operations, used for display.

    Attributes:
        pending_count: Operations waiting for delivery.
        error_count: Operations whose last delivery failed.
        last_sync_time: ISO-8601 time of the newest completed operation.
    """

    pending_count: int = 0
    error_count: int = 0
    last_sync_time: str | None = None

    @classmethod
    def from_operations(cls, operations: list[SyncOperation]) -> SyncStatusSummary:
        """Compute the summary by scanning a set of operations."""
        pending = sum(1 for op in operations if op.status == SyncOperationStatus.PENDING)
        errors = sum(1 for op in operations if op.status == SyncOperationStatus.ERROR)
        completed = [
            op.timestamp for op in operations if op.status == SyncOperationStatus.COMPLETED
        ]
        last = _ms_to_iso(max(completed)) if completed else None
        return cls(pending_count=pending, error_count=errors, last_sync_time=last)

    def to_dict(self) -> dict[str, Any]:
        return {
            "pendingCount": self.pending_count,
            "errorCount": self.error_count,
            "lastSyncTime": self.last_sync_time,
        }


@dataclass
class ReplayResult:
    """Result of a replay pass.

    Attributes:
        processed: Operations delivered successfully.
        failed: Operations that ended in error state.
        total: Pending operations found at the start of the pass.
        skipped: Operations claimed by another replayer before this one.
        errors: Failure classification per failed operation id.
    """

    processed: int = 0
    failed: int = 0
    total: int = 0
    skipped: int = 0
    errors: dict[str, ReplayErrorType] = field(default_factory=dict)

    def to_dict(self) -> dict[str, int]:
        return {"processed": self.processed, "failed": self.failed, "total": self.total}


class CacheStrategy(str, Enum):
    """Caching strategy applied to a matched request."""

    NETWORK_FIRST = "NetworkFirst"
    STALE_WHILE_REVALIDATE = "StaleWhileRevalidate"
    CACHE_FIRST = "CacheFirst"


@dataclass(frozen=True)
class ExpirationPolicy:
    """Eviction bounds for one named cache.

    Attributes:
        max_entries: Keep at most this many entries, evicting oldest first.
        max_age_seconds: Entries older than this are evicted on access.

    Raises:
        ValueError: If a bound is set but not positive.
    """

    max_entries: int | None = None
    max_age_seconds: int | None = None

    def __post_init__(self) -> None:
        """Validate bounds."""
        if self.max_entries is not None and self.max_entries <= 0:
            raise ValueError(f"max_entries must be positive, got {self.max_entries}")
        if self.max_age_seconds is not None and self.max_age_seconds <= 0:
            raise ValueError(
                f"max_age_seconds must be positive, got {self.max_age_seconds}"
            )


@dataclass(frozen=True)
class CachePolicyEntry:
    """One row of the request-to-strategy routing table.

    Attributes:
        name: Short label used in listings.
        url_pattern: Regex searched against the request URL path.
        handler: Strategy to apply.
        cache_name: Name of the cache the strategy reads and writes.
        expiration: Eviction bounds for that cache.
        network_timeout_seconds: Network-first only; fall back to cache after this.
        methods: HTTP methods this entry applies to.

    Raises:
        ValueError: If the timeout is not positive, is set for a strategy
            other than network-first, or methods is empty.
    """

    name: str
    url_pattern: re.Pattern[str]
    handler: CacheStrategy
    cache_name: str
    expiration: ExpirationPolicy = field(default_factory=ExpirationPolicy)
    network_timeout_seconds: float | None = None
    methods: frozenset[str] = frozenset({"GET"})

    def __post_init__(self) -> None:
        """Compile the pattern and validate options."""
        if isinstance(self.url_pattern, str):
            object.__setattr__(self, "url_pattern", re.compile(self.url_pattern))
        object.__setattr__(self, "methods", frozenset(m.upper() for m in self.methods))
        if not self.methods:
            raise ValueError("methods cannot be empty")
        if not self.cache_name:
            raise ValueError("cache_name cannot be empty")
        if self.network_timeout_seconds is not None:
            if self.handler != CacheStrategy.NETWORK_FIRST:
                raise ValueError(
                    "network_timeout_seconds only applies to NetworkFirst routes"
                )
            if self.network_timeout_seconds <= 0:
                raise ValueError(
                    "network_timeout_seconds must be positive, "
                    f"got {self.network_timeout_seconds}"
                )

    def matches(self, method: str, path: str) -> bool:
        """Check whether a request falls under this entry.

        Args:
            method: Request method.
            path: URL path (no query string).

        Returns:
            True if both the method and the path pattern match.
        """
        return method.upper() in self.methods and self.url_pattern.search(path) is not None


@dataclass(frozen=True)
class CachedResponse:
    """Snapshot of a network response held in a cache.

    Attributes:
        url: Absolute URL the response was fetched from.
        status_code: HTTP status.
        headers: Response headers as (name, value) pairs.
        content: Raw body bytes.
        stored_at: Unix time the entry was written.
    """

    url: str
    status_code: int
    headers: tuple[tuple[str, str], ...]
    content: bytes
    stored_at: float
