from __future__ import annotations

from typing import Optional


class StoreHubError(RuntimeError):
    """
    Base for errors that map onto an HTTP error envelope.
    """

    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_body(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(StoreHubError):
    status_code = 400


class NotFoundError(StoreHubError):
    status_code = 404


class SyncError(StoreHubError):
    """Upstream store unreachable or answered badly during a catalog sync."""

    status_code = 500

    def __init__(self, store_id: str, message: str):
        super().__init__(f"Failed to sync products: {message}", details=message)
        self.store_id = store_id
        self.reason = message


def require_fields(payload: dict, *fields: str) -> None:
    """Raise ValidationError naming every field that is absent or empty."""
    missing = [f for f in fields if not payload.get(f)]
    if missing:
        raise ValidationError(
            "Missing required fields",
            details=f"{', '.join(missing)} {'is' if len(missing) == 1 else 'are'} required",
        )


def require_present(payload: dict, *fields: str) -> None:
    """
    Raise ValidationError naming every field that is absent, null or an empty
    string. Empty lists and objects count as present.
    """
    missing = [f for f in fields if payload.get(f) is None or payload.get(f) == ""]
    if missing:
        raise ValidationError(
            "Missing required fields",
            details=f"{', '.join(missing)} {'is' if len(missing) == 1 else 'are'} required",
        )
