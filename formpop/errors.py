"""Failure types raised while re-populating a document."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List


@dataclass(frozen=True)
class Diagnostic:
    """A structural problem reported while parsing the document."""

    line: int
    message: str

    def __str__(self) -> str:
        return f"Line {self.line}: {self.message}"


class FormPopulationError(Exception):
    """Base class for terminal failures of a rewrite."""


class ParseFailure(FormPopulationError):
    """The markup contained structural errors the parser had to recover from."""

    def __init__(self, diagnostics: Iterable[Diagnostic]) -> None:
        self.diagnostics: List[Diagnostic] = list(diagnostics)
        plural = "s" if len(self.diagnostics) > 1 else ""
        details = "\n".join(str(diagnostic) for diagnostic in self.diagnostics)
        super().__init__(
            f"Could not parse the document due to the following error{plural}:\n\n{details}"
        )


class UnsupportedEncoding(FormPopulationError):
    """No codec is available for the document's encoding."""

    def __init__(self, encoding: str) -> None:
        self.encoding = encoding
        super().__init__(f'No codec available, document encoding "{encoding}" cannot be handled.')


class SerializationFailure(FormPopulationError):
    """The rewritten tree could not be turned back into markup."""

    MALFORMED_ENCODING = "malformed encoding"
    DEPTH_LIMIT = "depth limit"
    ENGINE_ERROR = "engine error"

    _EXPLANATIONS = {
        MALFORMED_ENCODING: "the output contained malformed character data",
        DEPTH_LIMIT: "the document is nested too deeply to be serialized",
        ENGINE_ERROR: "an unexpected error occurred in the text processing engine",
    }

    def __init__(self, cause: str, detail: str = "") -> None:
        self.cause = cause
        message = (
            "Encountered an error while serializing the rewritten document: "
            + self._EXPLANATIONS.get(cause, cause)
            + "."
        )
        if detail:
            message += f" ({detail})"
        super().__init__(message)


__all__ = [
    "Diagnostic",
    "FormPopulationError",
    "ParseFailure",
    "SerializationFailure",
    "UnsupportedEncoding",
]
