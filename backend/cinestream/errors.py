"""Error taxonomy shared by the catalog core and the HTTP layer."""
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import status


class CatalogError(Exception):
    """Base error carrying a stable kind and a caller-safe reason."""

    kind = "internal_failure"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "message": self.reason}


class ConflictError(CatalogError):
    """Duplicate registration or duplicate watchlist entry."""

    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT


class UnauthorizedError(CatalogError):
    """Missing, invalid or expired token, or bad credentials."""

    kind = "unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(CatalogError):
    """Authenticated caller without the required role."""

    kind = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(CatalogError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class InvalidInputError(CatalogError):
    """Validation failure on a mutation payload."""

    kind = "invalid_input"
    status_code = 422

    def __init__(self, reason: str, field: Optional[str] = None) -> None:
        self.field = field
        super().__init__(reason)

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        if self.field is not None:
            payload["field"] = self.field
        return payload


class InvalidTokenError(CatalogError):
    """Raised by the token service; never surfaced directly to callers."""

    kind = "invalid_token"
    status_code = status.HTTP_401_UNAUTHORIZED


class InternalFailureError(CatalogError):
    """Unexpected storage or runtime failure, reported without detail."""

    def __init__(self, reason: str = "Internal server error") -> None:
        super().__init__(reason)
