"""
Wallet API error type and classification.

Every failed call to the wallet service is raised as a WalletApiError carrying
the HTTP status (0 when the service could not be reached) and the raw error
body. Callers never inspect status codes or body shapes themselves; they
branch on the ErrorKind returned by classify().

Error body convention of the wallet service:

    {"errors": [{"status": 400, "message": "...", "description": "..."}]}
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Outcome of classifying a failed wallet API call."""

    CONNECTIVITY = "connectivity"
    DOMAIN_MESSAGE = "domain_message"
    SILENT = "silent"


@dataclass(frozen=True)
class ClassifiedError:
    kind: ErrorKind
    message: str | None = None
    description: str | None = None

    @property
    def description_bearing(self) -> bool:
        """True if the first error entry carried a description field."""
        return self.description is not None


CONNECTIVITY = ClassifiedError(ErrorKind.CONNECTIVITY)
SILENT = ClassifiedError(ErrorKind.SILENT)


def _decode_body(body: Any) -> Any:
    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError:
            return None
    if isinstance(body, str):
        try:
            return json.loads(body)
        except ValueError:
            return None
    return body


def first_error_entry(body: Any) -> dict[str, Any] | None:
    """
    Return the first structured error entry of an error body.

    Returns None when the body is not JSON, has no "errors" list, or the
    first entry is not an object with a string message.
    """
    data = _decode_body(body)
    if not isinstance(data, dict):
        return None
    errors = data.get("errors")
    if not isinstance(errors, list) or not errors:
        return None
    entry = errors[0]
    if not isinstance(entry, dict) or not isinstance(entry.get("message"), str):
        return None
    return entry


def classify(status: int | None, body: Any = None) -> ClassifiedError:
    """
    Map a raw failure to a ClassifiedError.

    - status 0 or None: the service is unreachable (CONNECTIVITY)
    - 4xx with a parseable first error entry: DOMAIN_MESSAGE with its message
    - anything else: SILENT, to be logged but not shown
    """
    if not status:
        return CONNECTIVITY

    if 400 <= status < 500:
        entry = first_error_entry(body)
        if entry is not None:
            description = entry.get("description")
            return ClassifiedError(
                ErrorKind.DOMAIN_MESSAGE,
                message=entry["message"],
                description=str(description) if description is not None else None,
            )

    return SILENT


class WalletApiError(Exception):
    """Raised by WalletApiClient for any failed call."""

    def __init__(
        self, status: int, body: Any = None, endpoint: str = "", malformed: bool = False
    ) -> None:
        self.status = status
        self.body = body
        self.endpoint = endpoint
        # Set when a success response carried an unusable body
        self.malformed = malformed
        reason = "malformed response" if malformed else "call failed"
        super().__init__(f"Wallet API {reason}: {endpoint or 'unknown'} (status {status})")

    @property
    def classification(self) -> ClassifiedError:
        return classify(self.status, self.body)

    @property
    def kind(self) -> ErrorKind:
        return self.classification.kind
