"""Command-line interface for formpop."""

import argparse
import sys
from pathlib import Path
from typing import Any, Iterable, Optional
from urllib.parse import urlsplit

import yaml

from .config import load_config, resolve_config
from .context import FieldErrors, RequestContext
from .engine import FormPopulator
from .errors import FormPopulationError
from .field_names import IndexCounter, resolve_field_name
from .loader import load_document
from .models import RewriteConfig
from .rewriter import CHECKABLE, ControlKind, classify_control


def warn(msg: str) -> None:
    print(msg, file=sys.stderr)


def _load_settings(path: Optional[str]) -> RewriteConfig:
    try:
        layer = load_config(Path(path)) if path else None
        return resolve_config(layer)
    except (ValueError, yaml.YAMLError) as exc:
        # pydantic's ValidationError is a ValueError
        raise SystemExit(f"Invalid configuration in {path}: {exc}") from exc


def _load_values(path: Path) -> dict:
    data: Any = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise SystemExit(f"{path} must contain a mapping of submitted values.")
    return data


def _request_uri(url: str) -> str:
    parts = urlsplit(url)
    uri = parts.path or "/"
    if parts.query:
        uri += "?" + parts.query
    return uri


def _handle_populate(args: argparse.Namespace) -> None:
    config = _load_settings(args.config)
    content = Path(args.input).read_bytes()
    values = _load_values(Path(args.values))
    request = RequestContext(
        method=args.method,
        url=args.url,
        request_uri=_request_uri(args.url) if args.url else "",
        data={} if args.forms else values,
    )
    populator = FormPopulator(config)
    try:
        output = populator.populate(
            content,
            request=request,
            errors=FieldErrors.of(args.error or []),
            forms=values if args.forms else None,
            content_type=args.content_type,
        )
    except FormPopulationError as exc:
        warn(str(exc))
        raise SystemExit(1) from exc

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(output)
    else:
        sys.stdout.buffer.write(output)
        sys.stdout.flush()


def _form_label(form, index: int) -> str:
    if form.get("id"):
        return f"#{form['id']}"
    if form.get("action") is not None:
        return f"form {index} (action={form['action']!r})"
    return f"form {index}"


def _handle_fields(args: argparse.Namespace) -> None:
    config = _load_settings(args.config)
    content = Path(args.input).read_bytes()
    try:
        result = load_document(content, config, content_type=args.content_type)
    except FormPopulationError as exc:
        warn(str(exc))
        raise SystemExit(1) from exc
    if result.diagnostics:
        for diagnostic in result.diagnostics:
            warn(str(diagnostic))
        raise SystemExit(1)

    document = result.document
    for index, form in enumerate(document.find_all("form"), start=1):
        print(_form_label(form, index))
        counter = IndexCounter()
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
                print(f"  {tag['name']}\t(ignored)")
                continue
            print(f"  {path.name}\t{kind.value}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="formpop",
        description="Re-populate HTML and XHTML forms with submitted values.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="formpop 0.1.0",
        help="Show the formpop version and exit.",
    )

    subparsers = parser.add_subparsers(dest="command")

    populate_parser = subparsers.add_parser(
        "populate",
        help="Populate the forms of a document.",
        description=(
            "Fill form controls with submitted values and mark fields that "
            "failed validation."
        ),
    )
    populate_parser.add_argument(
        "--in", dest="input", required=True, help="Path to the HTML or XHTML document."
    )
    populate_parser.add_argument(
        "--values",
        required=True,
        help="YAML or JSON file with the submitted values.",
    )
    populate_parser.add_argument(
        "--forms",
        action="store_true",
        help="Treat the values file as a mapping of form id to values.",
    )
    populate_parser.add_argument(
        "--error",
        action="append",
        metavar="FIELD",
        help="Field path that failed validation (repeatable).",
    )
    populate_parser.add_argument(
        "--url", default="", help="Full URL of the request the document answers."
    )
    populate_parser.add_argument(
        "--method", default="POST", help="Request method (default: POST)."
    )
    populate_parser.add_argument(
        "--content-type", dest="content_type", help="Content-Type of the response."
    )
    populate_parser.add_argument("--config", help="YAML file with engine options.")
    populate_parser.add_argument(
        "--out", dest="output", help="Write the result here instead of stdout."
    )
    populate_parser.set_defaults(func=_handle_populate)

    fields_parser = subparsers.add_parser(
        "fields",
        help="List the controls of each form with their resolved field paths.",
        description="Show how control names resolve, form by form.",
    )
    fields_parser.add_argument(
        "--in", dest="input", required=True, help="Path to the HTML or XHTML document."
    )
    fields_parser.add_argument(
        "--content-type", dest="content_type", help="Content-Type of the response."
    )
    fields_parser.add_argument("--config", help="YAML file with engine options.")
    fields_parser.set_defaults(func=_handle_fields)

    return parser


def main(argv: Optional[Iterable[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    if hasattr(args, "func"):
        args.func(args)
    else:
        parser.print_help()


__all__ = ["build_parser", "main"]


if __name__ == "__main__":
    main()
