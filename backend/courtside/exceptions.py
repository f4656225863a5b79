from typing import Optional

from fastapi import HTTPException
from pydantic import BaseModel


class ProblemDetail(BaseModel):
    """RFC 7807 compliant error response."""

    type: str = "about:blank"
    title: str
    detail: Optional[str] = None
    status: int
    instance: Optional[str] = None
    code: str


class DomainException(Exception):
    """Errors raised by the match API that map straight onto a problem response."""

    status_code = 400
    title = "Bad Request"
    code = "bad_request"

    def __init__(self, detail: Optional[str] = None) -> None:
        super().__init__(detail or self.title)
        self.detail = detail

    def to_problem(self, instance: Optional[str] = None) -> ProblemDetail:
        return ProblemDetail(
            title=self.title,
            detail=self.detail,
            status=self.status_code,
            instance=instance,
            code=self.code,
        )


class MatchNotFound(DomainException):
    status_code = 404
    title = "Match not found"
    code = "match_not_found"

    def __init__(self, match_id: str) -> None:
        super().__init__(f"match '{match_id}' not found")
        self.match_id = match_id


class MatchForbidden(DomainException):
    status_code = 403
    title = "Forbidden"
    code = "match_forbidden"

    def __init__(self, match_id: str) -> None:
        super().__init__(f"admin token does not grant access to match '{match_id}'")
        self.match_id = match_id


class MatchConflict(DomainException):
    """Raised when a write was based on a stale version of the match."""

    status_code = 409
    title = "Match was updated concurrently"
    code = "match_conflict"

    def __init__(self, match_id: str, expected: int, actual: Optional[int]) -> None:
        super().__init__(
            f"match '{match_id}' is at version {actual}, "
            f"update was based on version {expected}"
        )
        self.match_id = match_id
        self.expected_version = expected
        self.actual_version = actual


def http_problem(
    status_code: int,
    detail: str,
    code: str,
    *,
    headers: Optional[dict[str, str]] = None,
) -> HTTPException:
    """Create an HTTPException with an attached problem code."""

    exc = HTTPException(status_code=status_code, detail=detail, headers=headers)
    setattr(exc, "code", code)
    return exc
