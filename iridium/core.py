"""Core types shared by the parser, compiler, store and pipeline."""

from enum import StrEnum
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class Severity(StrEnum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Diag(BaseModel):
    """A structured diagnostic message."""

    severity: Severity
    code: str
    message: str
    hint: str | None = None


class Result(BaseModel, Generic[T]):  # noqa: UP046  Pydantic requires a Generic[T] subclass
    """Result container that pairs output with diagnostics.

    A notebook that does not parse, a cell that is not one notebook
    statement, a cell the compiler cannot translate and a missing or
    unreadable notebook file are expected outcomes, reported here rather
    than raised.
    """

    data: T | None = None
    diagnostics: list[Diag] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(d.severity == Severity.ERROR for d in self.diagnostics)

    @property
    def ok(self) -> bool:
        return not self.has_errors

    @property
    def codes(self) -> list[str]:
        return [d.code for d in self.diagnostics if d.severity == Severity.ERROR]

    def error(self, code: str, message: str, *, hint: str | None = None) -> None:
        self.diagnostics.append(Diag(severity=Severity.ERROR, code=code, message=message, hint=hint))

    def warning(self, code: str, message: str, *, hint: str | None = None) -> None:
        self.diagnostics.append(Diag(severity=Severity.WARNING, code=code, message=message, hint=hint))

    def info(self, code: str, message: str, *, hint: str | None = None) -> None:
        self.diagnostics.append(Diag(severity=Severity.INFO, code=code, message=message, hint=hint))

    def extend(self, other: "Result[object]") -> None:
        """Carry over every diagnostic from another result."""
        self.diagnostics.extend(other.diagnostics)

    def summary(self) -> str:
        """Join error messages into one line for logs and HTTP error bodies."""
        return "; ".join(d.message for d in self.diagnostics if d.severity == Severity.ERROR)
