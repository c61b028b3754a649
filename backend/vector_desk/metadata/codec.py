"""Typed metadata codec.

Forms edit metadata as strings tagged with a declared type; the database
receives native values. ``classify`` is the single place that decides the
type of a native value, so paste import, draft creation and inline edit
reconciliation always agree.
"""

from __future__ import annotations

import math
from typing import Any, Iterable, Mapping

from vector_desk.models.entities import (
    DocumentRecord,
    MetadataValue,
    MetadataValueType,
    TypedField,
    TypedMetadata,
)


def classify(value: Any) -> MetadataValueType:
    """Return the metadata type of a native value."""
    # bool is a subclass of int
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    return "string"


def parse_number(text: str) -> int | float | None:
    """Parse a trimmed numeric string, returning None when it is not a number."""
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    if math.isnan(number):
        return None
    return number


def format_metadata_value(value: Any) -> str:
    """Render a native metadata value the way it appears in an editable field."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if value is None:
        return ""
    return str(value)


def validate_metadata_value(value: str, type_: MetadataValueType) -> str | None:
    """Return an error message when ``value`` does not match ``type_``.

    Empty values are always allowed.
    """
    trimmed = value.strip()
    if trimmed == "":
        return None
    if type_ == "number":
        if parse_number(trimmed) is None:
            return "Must be a valid number"
        return None
    if type_ == "boolean":
        if trimmed.lower() not in ("true", "false"):
            return 'Must be "true" or "false"'
        return None
    return None


def validate_typed_metadata(metadata: TypedMetadata) -> tuple[str, str] | None:
    """Return ``(key, message)`` for the first invalid field, or None."""
    for key, typed in metadata.items():
        error = validate_metadata_value(typed.value, typed.type)
        if error:
            return key, error
    return None


def typed_metadata_to_chroma_format(metadata: TypedMetadata) -> dict[str, MetadataValue] | None:
    """Convert typed fields to native values, dropping blanks.

    Returns None when every field is blank.
    """
    converted: dict[str, MetadataValue] = {}
    for key, typed in metadata.items():
        trimmed = typed.value.strip()
        if trimmed == "":
            continue
        if typed.type == "number":
            number = parse_number(trimmed)
            if number is None:
                raise ValueError(f"{key}: Must be a valid number")
            converted[key] = number
        elif typed.type == "boolean":
            converted[key] = trimmed.lower() == "true"
        else:
            converted[key] = trimmed
    return converted or None


def string_metadata_to_typed(
    metadata: Mapping[str, str],
    type_hints: Mapping[str, MetadataValueType] | None = None,
) -> TypedMetadata:
    return {
        key: TypedField(value=value, type=(type_hints or {}).get(key) or "string")
        for key, value in metadata.items()
    }


def native_metadata_to_typed(metadata: Mapping[str, Any] | None) -> TypedMetadata:
    if not metadata:
        return {}
    return {
        key: TypedField(value=format_metadata_value(value), type=classify(value))
        for key, value in metadata.items()
    }


def collection_type_hints(records: Iterable[DocumentRecord]) -> dict[str, MetadataValueType]:
    """Map each metadata key to the type it has in the first record holding it."""
    hints: dict[str, MetadataValueType] = {}
    for record in records:
        if not record.metadata:
            continue
        for key, value in record.metadata.items():
            if key not in hints:
                hints[key] = classify(value)
    return hints


def coerce_edit_value(original: Any, raw: str) -> MetadataValue:
    """Keep the original's type when an inline edit still parses as it."""
    kind = classify(original) if original is not None else "string"
    if kind == "number":
        number = parse_number(raw.strip())
        if number is not None:
            return number
    elif kind == "boolean":
        lowered = raw.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
    return raw


__all__ = [
    "classify",
    "parse_number",
    "format_metadata_value",
    "validate_metadata_value",
    "validate_typed_metadata",
    "typed_metadata_to_chroma_format",
    "string_metadata_to_typed",
    "native_metadata_to_typed",
    "collection_type_hints",
    "coerce_edit_value",
]
