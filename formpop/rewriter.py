"""Rewrite form controls to reflect submitted values and validation errors."""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Any, Iterable, Optional, Pattern

from bs4 import CData, NavigableString, Tag

from .context import ErrorLookup
from .encoding import EncodingConverter
from .field_names import FieldPath, IndexCounter, resolve_field_name
from .loader import Document
from .models import RewriteConfig
from .values import MISSING, SubmittedValues

logger = logging.getLogger(__name__)


class ControlKind(Enum):
    TEXT = "text"
    HIDDEN = "hidden"
    PASSWORD = "password"
    FILE = "file"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    SELECT_SINGLE = "select"
    SELECT_MULTIPLE = "select-multiple"
    TEXTAREA = "textarea"


INPUT_KINDS = {
    "text": ControlKind.TEXT,
    "hidden": ControlKind.HIDDEN,
    "password": ControlKind.PASSWORD,
    "file": ControlKind.FILE,
    "checkbox": ControlKind.CHECKBOX,
    "radio": ControlKind.RADIO,
}
CHECKABLE = (ControlKind.CHECKBOX, ControlKind.RADIO)
SELECTS = (ControlKind.SELECT_SINGLE, ControlKind.SELECT_MULTIPLE)
FALSY_VALUES = ("", "0")


def classify_control(tag: Tag, document: Document, config: RewriteConfig) -> Optional[ControlKind]:
    """Return the kind of a named form control, or None if it is not populated."""

    if not tag.has_attr("name"):
        return None
    if document.matches(tag, "textarea"):
        return ControlKind.TEXTAREA
    if document.matches(tag, "select"):
        if tag.has_attr("multiple"):
            return ControlKind.SELECT_MULTIPLE
        return ControlKind.SELECT_SINGLE
    if not document.matches(tag, "input"):
        return None
    input_type = tag.get("type")
    if input_type is None:
        return ControlKind.TEXT
    kind = INPUT_KINDS.get(str(input_type).lower())
    if kind is ControlKind.HIDDEN and not config.include_hidden_inputs:
        return None
    if kind is ControlKind.CHECKBOX and "[]" in tag["name"] and not tag.has_attr("value"):
        return None
    return kind


def compile_skip(entries: Iterable[str]) -> Optional[Pattern[str]]:
    """Build a matcher for skipped fields; ``[]`` stands for any one index."""

    alternatives = [
        re.escape(entry).replace(r"\[\]", r"\[[^\]]*\]") for entry in entries if entry
    ]
    if not alternatives:
        return None
    return re.compile(r"\A(?:" + "|".join(alternatives) + r")(?:\[|\Z)")


def add_class(tag: Tag, class_name: str) -> None:
    current = tag.get("class")
    tokens = list(current) if isinstance(current, list) else str(current or "").split()
    missing = [token for token in class_name.split() if token not in tokens]
    if missing:
        tag["class"] = " ".join(tokens + missing)


def _remove(tag: Tag, attribute: str) -> None:
    if tag.has_attr(attribute):
        del tag[attribute]


def _option_value(option: Tag) -> str:
    if option.has_attr("value"):
        return str(option["value"])
    return " ".join(option.get_text().split())


def _mark_error(tag: Tag, form: Tag, document: Document, error_class: str) -> None:
    add_class(tag, error_class)
    for label in document.find_parents(tag, "label"):
        if not label.has_attr("for"):
            add_class(label, error_class)
    control_id = tag.get("id")
    if control_id:
        for label in document.find_all("label", form):
            if label.get("for") == control_id:
                add_class(label, error_class)


def apply_value(
    kind: ControlKind,
    tag: Tag,
    value: Any,
    path: FieldPath,
    document: Document,
    config: RewriteConfig,
) -> None:
    """Set the control state for ``value`` (MISSING when nothing was submitted)."""

    present = value is not MISSING
    if kind in (ControlKind.TEXT, ControlKind.HIDDEN):
        _remove(tag, "value")
        if present:
            tag["value"] = value
    elif kind in CHECKABLE:
        _remove(tag, "checked")
        if isinstance(value, list):
            if path.array_marker and tag.get("value") in value:
                tag["checked"] = "checked"
        elif present:
            if tag.has_attr("value"):
                checked = tag["value"] == value
            else:
                checked = value not in FALSY_VALUES
            if checked:
                tag["checked"] = "checked"
    elif kind is ControlKind.PASSWORD:
        _remove(tag, "value")
        if present and config.include_password_inputs:
            tag["value"] = value
    elif kind in SELECTS:
        multiple = kind is ControlKind.SELECT_MULTIPLE
        for option in document.find_all("option", tag):
            _remove(option, "selected")
            if not present:
                continue
            option_value = _option_value(option)
            if isinstance(value, list):
                selected = multiple and option_value in value
            else:
                selected = option_value == value
            if selected:
                option["selected"] = "selected"
    elif kind is ControlKind.TEXTAREA:
        text = value if present else ""
        tag.clear()
        if document.is_xhtml and document.proper_xhtml and text and "]]>" not in text:
            tag.append(CData(text))
        else:
            tag.append(NavigableString(text))


def rewrite_form(
    form: Tag,
    values: SubmittedValues,
    errors: ErrorLookup,
    document: Document,
    config: RewriteConfig,
    converter: EncodingConverter,
) -> int:
    """Populate the controls of one form; returns the number of controls visited."""

    skip = compile_skip(config.skip)
    counter = IndexCounter()
    visited = 0
    for tag in form.find_all(True):
        kind = classify_control(tag, document, config)
        if kind is None:
            continue
        path, counter = resolve_field_name(
            str(tag["name"]),
            counter,
            checkable=kind in CHECKABLE,
            multiple=kind is ControlKind.SELECT_MULTIPLE,
        )
        if path is None:
            logger.debug("Ignoring control with unusable name %r", tag["name"])
            continue
        if skip is not None and skip.match(path.skip_key):
            continue
        visited += 1

        if errors.has_error(path.name):
            _mark_error(tag, form, document, config.error_class)

        value = values.lookup(path.name)
        if isinstance(value, list) and not (kind in SELECTS or path.array_marker):
            # the name only matched a prefix of a nested structure
            continue
        if value is not MISSING:
            value = converter.to_document(value)
        apply_value(kind, tag, value, path, document, config)
    return visited


__all__ = [
    "ControlKind",
    "add_class",
    "apply_value",
    "classify_control",
    "compile_skip",
    "rewrite_form",
]
