"""Application error taxonomy."""

from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True)
class ErrorSpec:
    """HTTP mapping for an error kind."""

    status_code: int
    code: str
    default_message: str


class ErrorKind(Enum):
    """Closed set of error kinds (single source of truth for HTTP mapping)."""

    VALIDATION = ErrorSpec(400, "VALIDATION_ERROR", "Invalid request")
    UNAUTHORIZED = ErrorSpec(401, "UNAUTHORIZED", "Unauthorized")
    NOT_FOUND = ErrorSpec(404, "NOT_FOUND", "Resource not found")
    CONFLICT = ErrorSpec(409, "CONFLICT", "Resource already exists")
    RATE_LIMITED = ErrorSpec(
        429, "RATE_LIMITED", "Too many requests. Please try again later."
    )
    PREDICTION_FAILED = ErrorSpec(
        400,
        "INGREDIENT_PREDICTION_FAILED",
        "Could not predict ingredients from the image. "
        "Please try with a clearer photo.",
    )
    NUTRITION_FAILED = ErrorSpec(
        400,
        "NUTRITION_CALCULATION_FAILED",
        "Could not calculate nutrition for the provided ingredients. "
        "Some ingredients may not be recognized.",
    )
    DEPENDENCY_UNAVAILABLE = ErrorSpec(
        500, "DEPENDENCY_UNAVAILABLE", "A backing service is unavailable"
    )
    INTERNAL = ErrorSpec(500, "INTERNAL_ERROR", "Internal server error")

    @property
    def status_code(self) -> int:
        return self.value.status_code

    @property
    def code(self) -> str:
        return self.value.code


@dataclass(eq=False)
class AppError(Exception):
    """Operational error carrying its kind and client-safe context."""

    kind: ErrorKind
    message: str = ""
    details: dict[str, object] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.message:
            self.message = self.kind.value.default_message
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    @property
    def status(self) -> str:
        """Return `fail` for client errors and `error` for server errors."""
        return "fail" if self.status_code < 500 else "error"

    @classmethod
    def bad_request(
        cls, message: str, details: dict[str, object] | None = None
    ) -> "AppError":
        return cls(ErrorKind.VALIDATION, message, details or {})

    @classmethod
    def unauthorized(cls, message: str = "Unauthorized") -> "AppError":
        return cls(ErrorKind.UNAUTHORIZED, message)

    @classmethod
    def not_found(cls, resource: str) -> "AppError":
        return cls(ErrorKind.NOT_FOUND, f"{resource} not found")

    @classmethod
    def conflict(cls, message: str) -> "AppError":
        return cls(ErrorKind.CONFLICT, message)

    @classmethod
    def internal(cls, message: str = "Internal server error") -> "AppError":
        return cls(ErrorKind.INTERNAL, message)

    @classmethod
    def rate_limited(
        cls, retry_after: int, details: dict[str, object]
    ) -> "AppError":
        return cls(
            ErrorKind.RATE_LIMITED,
            details=details,
            headers={"Retry-After": str(retry_after)},
        )
