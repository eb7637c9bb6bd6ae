"""
Operation Results

Every registry, ledger and dashboard operation returns either a Success
carrying a value or a Failure carrying an ErrorKind and a message.

DESIGN DECISION: Business rejections (bad input, duplicates, blocked deletes)
and infrastructure failures (store outages, missing session) share one shape.
Callers branch on `ok` and, when they care, on `kind`; they never need a
try/except around a component call.

Results are plain dataclasses rather than pydantic models: they are never
validated from or serialized to external data, and `Success[T]` must stay a
parametrized generic so `Result[T]` can be subscripted in annotations.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar, Union


T = TypeVar("T")


class ErrorKind(str, Enum):
    """Why an operation failed."""
    VALIDATION = "validation"                   # Bad input shape or range
    NOT_FOUND = "not_found"                     # Referenced record absent
    CATEGORY_NOT_FOUND = "category_not_found"   # Transaction points at a missing category
    DUPLICATE_NAME = "duplicate_name"           # Category name collision
    CATEGORY_IN_USE = "category_in_use"         # Delete blocked by referencing transactions
    UNAUTHENTICATED = "unauthenticated"         # No current user
    STORE_ERROR = "store_error"                 # Collaborator failure


@dataclass(frozen=True)
class Success(Generic[T]):
    """Operation succeeded; `value` holds its output (None for plain commands)."""

    value: T = None
    message: str = ""
    ok: bool = field(default=True, init=False)


@dataclass(frozen=True)
class Failure:
    """Operation failed; `message` is safe to show to the user."""

    kind: ErrorKind
    message: str
    ok: bool = field(default=False, init=False)

    def __post_init__(self):
        if not self.message:
            raise ValueError("Failure message must not be empty")

    @property
    def value(self) -> Any:
        return None


Result = Union[Success[T], Failure]


def success(value: Any = None, message: str = "") -> Success:
    return Success(value=value, message=message)


def failure(kind: ErrorKind, message: str) -> Failure:
    return Failure(kind=kind, message=message)
