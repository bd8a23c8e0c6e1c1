"""Tagged success/failure values returned by the product registry."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import ClassVar, Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(StrEnum):
    """Failure categories surfaced by registry operations."""

    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    EMPTY_COLLECTION = "empty_collection"
    INTERNAL = "internal"


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    ok: ClassVar[bool] = True


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str

    ok: ClassVar[bool] = False


Result = Union[Ok[T], Err]
"""Either ``Ok`` carrying the operation's value or ``Err`` describing why it failed."""
