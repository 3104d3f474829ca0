"""
Errors returned by the REST API.

Every error response has the body ``{"error": {"type", "message", "detail"}}``.
"""

from typing import Any

from build_retention.core.exceptions import LookupFailure


def error_body(error_type: str, message: str, detail: Any = None) -> dict[str, Any]:
    return {"error": {"type": error_type, "message": message, "detail": detail}}


class APIException(Exception):
    """An error the API reports to the caller with a fixed status code."""

    status_code: int = 500
    error_type: str = "api_error"

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    def body(self) -> dict[str, Any]:
        return error_body(self.error_type, self.message, self.detail)


class NoRepositoriesError(APIException):
    """A cleanup request named no repository."""

    status_code = 400
    error_type = "bad_request"

    def __init__(self) -> None:
        super().__init__(
            "No repositories given",
            detail="Pass repos=<key>[,<key>...] or params=repos=<key>[,<key>...]",
        )


class UnknownItemError(APIException):
    """A storage event referred to an item the repository service cannot find."""

    status_code = 404
    error_type = "not_found"

    def __init__(self, failure: LookupFailure) -> None:
        super().__init__(f"No item at {failure.repo_key}:{failure.path or ''}", detail=str(failure))
        self.repo_key = failure.repo_key
        self.path = failure.path
