"""Request, response and validation collaborators of the engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Protocol, Set, Union


class ErrorLookup(Protocol):
    """Answers whether a field failed validation."""

    def has_error(self, field_path: str) -> bool:  # pragma: no cover - protocol
        ...


@dataclass
class FieldErrors:
    """ErrorLookup backed by a set of failed field paths."""

    fields: Set[str] = field(default_factory=set)

    @classmethod
    def of(cls, names: Iterable[str]) -> "FieldErrors":
        return cls(set(names))

    def has_error(self, field_path: str) -> bool:
        return field_path in self.fields


NO_ERRORS = FieldErrors()


@dataclass
class RequestContext:
    """The parts of the current request the engine looks at."""

    method: str = "GET"
    url: str = ""
    request_uri: str = ""
    data: Mapping[str, Any] = field(default_factory=dict)
    attributes: Mapping[str, Any] = field(default_factory=dict)


@dataclass
class Response:
    """Outgoing response body handed to the filter."""

    content: Union[str, bytes, None]
    content_type: Optional[str] = None
    output_type: Optional[str] = None
    mutable: bool = True


__all__ = ["ErrorLookup", "FieldErrors", "NO_ERRORS", "RequestContext", "Response"]
