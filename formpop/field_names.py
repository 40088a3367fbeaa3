"""Resolution of control names into field paths.

Controls named ``item[]`` are numbered the way a decoded submission would
number them: each empty bracket pair receives the next free index for its
prefix within the current form, and explicit indices move the counter
forward. The counter is an immutable value threaded through the controls of
one form.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple, Union

BRACKET_RE = re.compile(r"([^\[]+)?(?:\[([^\]]*)\])")
INDEX_RE = re.compile(r"\A(?:0|[1-9][0-9]*)\Z")

Index = Union[int, str]


@dataclass(frozen=True)
class IndexCounter:
    """Highest index handed out per field prefix."""

    highest: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))

    def get(self, prefix: str) -> Optional[int]:
        return self.highest.get(prefix)

    def assign(self, prefix: str, token: str) -> Tuple[Index, "IndexCounter"]:
        """Resolve one bracket token below ``prefix``."""

        previous = self.highest.get(prefix)
        index: Index
        if token == "":
            index = 0 if previous is None else previous + 1
        elif INDEX_RE.match(token):
            index = int(token)
        else:
            index = token
        if isinstance(index, int) and (previous is None or index > previous):
            updated = dict(self.highest)
            updated[prefix] = index
            return index, IndexCounter(MappingProxyType(updated))
        return index, self


@dataclass(frozen=True)
class FieldPath:
    raw: str
    name: str
    array_marker: bool = False

    @property
    def skip_key(self) -> str:
        return self.name + "[]" if self.array_marker else self.name


def resolve_field_name(
    raw: str,
    counter: IndexCounter,
    *,
    checkable: bool = False,
    multiple: bool = False,
) -> Tuple[Optional[FieldPath], IndexCounter]:
    """Resolve a control's ``name`` attribute.

    ``checkable`` is set for checkboxes and radios, which may carry a single
    trailing ``[]`` marking them as members of a value list; any other
    placement of ``[]`` makes the control unusable and ``None`` is returned.
    For ``select multiple`` controls the last bracket pair is the list marker
    and does not take part in numbering.
    """

    name = raw
    array_marker = False
    if checkable:
        pos = name.find("[]")
        if pos != -1:
            if pos + 2 != len(name):
                return None, counter
            array_marker = True
            name = name[:pos]

    matches = BRACKET_RE.findall(name)
    if not matches:
        return FieldPath(raw, name, array_marker), counter

    resolved = matches[0][0]
    tokens = [token for _, token in matches]
    if multiple:
        tokens = tokens[:-1]
    for token in tokens:
        index, counter = counter.assign(resolved, token)
        resolved += f"[{index}]"
    return FieldPath(raw, resolved, array_marker), counter


__all__ = ["FieldPath", "IndexCounter", "resolve_field_name"]
