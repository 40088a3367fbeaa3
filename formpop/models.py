"""Pydantic models for form population settings."""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


OutputMode = Literal["html", "xhtml"]


def _as_list(value: Any) -> Any:
    if value is None:
        return []
    if isinstance(value, (str, bytes)):
        return [value]
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return value


class RewriteConfig(BaseModel):
    """Options recognized by the form population engine."""

    skip: List[str] = Field(
        default_factory=list,
        description=(
            "Field names excluded from population. An entry matches the field "
            "itself and its bracketed variants; '[]' matches any single index."
        ),
    )
    methods: List[str] = Field(
        default_factory=lambda: ["POST"],
        description="Request methods that trigger population from the request data.",
    )
    include_hidden_inputs: bool = Field(
        True, description="Whether hidden inputs are re-populated."
    )
    include_password_inputs: bool = Field(
        False, description="Whether password inputs get their submitted value back."
    )
    force_output_mode: Optional[OutputMode] = Field(
        None,
        description="Force HTML or XHTML handling instead of sniffing the DOCTYPE.",
    )
    force_encoding: Optional[str] = Field(
        None, description="Encoding to use instead of the detected one."
    )
    error_class: str = Field(
        "error",
        description="Class added to controls that failed validation and to their labels.",
    )
    cdata_fix: bool = Field(
        True,
        description="Rewrite CDATA fences in script and style blocks so both dialects accept them.",
    )
    remove_auto_xml_prolog: bool = Field(
        True,
        description="Drop the XML prolog added by the serializer when the source had none.",
    )
    parse_xhtml_as_xml: bool = Field(
        True, description="Parse XHTML documents with the XML parser."
    )
    populate: Union[bool, Dict[str, Dict[str, Any]], None] = Field(
        None,
        description=(
            "Explicit values keyed by form id, or False to disable population "
            "from the request data. True still requires a listed method."
        ),
    )
    output_types: Optional[List[str]] = Field(
        None,
        description="Only responses of these output types are processed; None means all.",
    )
    log_parse_errors: bool = Field(
        True, description="Log the response content when the document cannot be parsed."
    )
    logging_level: str = Field(
        "CRITICAL", description="Level used for parse failure log records."
    )
    logger_name: Optional[str] = Field(
        None, description="Logger receiving parse failures; defaults to the engine logger."
    )

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    @field_validator("force_output_mode", "force_encoding", mode="before")
    @classmethod
    def _off_to_none(cls, v: Any) -> Any:
        if v is False or v is None:
            return None
        text = str(v).strip().lower()
        return text or None

    @field_validator("skip", mode="before")
    @classmethod
    def _normalize_skip(cls, v: Any) -> Any:
        return _as_list(v)

    @field_validator("methods", mode="before")
    @classmethod
    def _normalize_methods(cls, v: Any) -> Any:
        return [str(method).upper() for method in _as_list(v)]

    @field_validator("output_types", mode="before")
    @classmethod
    def _normalize_output_types(cls, v: Any) -> Any:
        if v is None or v is False:
            return None
        return _as_list(v)

    @field_validator("logging_level", mode="before")
    @classmethod
    def _normalize_level(cls, v: Any) -> Any:
        text = str(v).upper()
        return "CRITICAL" if text == "FATAL" else text


__all__ = ["OutputMode", "RewriteConfig"]
