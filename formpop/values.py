"""Lookup of submitted values by resolved field path."""

from __future__ import annotations

import re
from typing import Any, List, Mapping, Sequence, Tuple, Union

SEGMENT_RE = re.compile(r"\[([^\]]*)\]")


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()

Value = Union[str, bytes, List[Union[str, bytes]]]


def split_field_path(path: str) -> Tuple[str, List[str]]:
    """Split ``a[0][b]`` into ``("a", ["0", "b"])``."""

    start = path.find("[")
    if start <= 0:
        return path, []
    return path[:start], SEGMENT_RE.findall(path, start)


def _normalize(value: Any) -> Any:
    if isinstance(value, Mapping):
        return [_scalar(item) for item in value.values()]
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_scalar(item) for item in value]
    return _scalar(value)


def _scalar(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (str, bytes)):
        return value
    if isinstance(value, bool):
        return "1" if value else ""
    if isinstance(value, (Mapping, list, tuple)):
        # nested deeper than a control can represent
        return _normalize(value)
    return str(value)


def _child(container: Any, key: str) -> Any:
    if isinstance(container, Mapping):
        if key in container:
            return container[key]
        if key.isdigit() and int(key) in container:
            return container[int(key)]
        return MISSING
    if isinstance(container, Sequence) and not isinstance(container, (str, bytes)):
        if key.isdigit() and int(key) < len(container):
            return container[int(key)]
    return MISSING


class SubmittedValues:
    """Values submitted for one form, flat or nested."""

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self.data = data if data is not None else {}

    def _flat(self, key: str) -> Any:
        if key not in self.data:
            return MISSING
        getlist = getattr(self.data, "getlist", None)
        if getlist is not None:
            items = getlist(key)
            if len(items) != 1:
                return list(items)
            return items[0]
        return self.data[key]

    def lookup(self, path: str) -> Any:
        """Return the value for ``path``, a list for collections, or MISSING."""

        base, segments = split_field_path(path)
        if segments:
            current = _child(self.data, base)
            for segment in segments:
                if current is MISSING:
                    break
                current = _child(current, segment)
            if current is MISSING:
                current = self._flat(path)
        else:
            current = self._flat(base)
        if current is MISSING:
            # multi-dicts keep the array marker in the submitted key
            current = self._flat(path + "[]")
            if current is not MISSING and not isinstance(current, list):
                current = [current]
        if current is MISSING:
            return MISSING
        return _normalize(current)

    def has(self, path: str) -> bool:
        return self.lookup(path) is not MISSING


__all__ = ["MISSING", "SubmittedValues", "Value", "split_field_path"]
