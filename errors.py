"""
Error kinds raised by the retrospective rule layer.
"""

import enum


class ErrorKind(str, enum.Enum):
    NOT_FOUND = "not_found"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    VOTE_LIMIT_REACHED = "vote_limit_reached"
    INVALID_REFERENCE = "invalid_reference"
    INVALID_ARGUMENT = "invalid_argument"
    UNAVAILABLE = "unavailable"


HTTP_STATUS = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.VOTE_LIMIT_REACHED: 409,
    ErrorKind.INVALID_REFERENCE: 400,
    ErrorKind.INVALID_ARGUMENT: 400,
    ErrorKind.UNAVAILABLE: 503,
}


class RetroError(Exception):
    """A rejected mutation. Nothing was written when this is raised."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def status_code(self) -> int:
        return HTTP_STATUS.get(self.kind, 400)

    def to_dict(self) -> dict:
        return {"error": self.message, "kind": self.kind.value}

    def __repr__(self) -> str:
        return f"<RetroError {self.kind.value}: {self.message}>"
