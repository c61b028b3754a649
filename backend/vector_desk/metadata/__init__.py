"""Typed metadata conversions between form fields and native values."""

from .codec import (
    classify,
    coerce_edit_value,
    collection_type_hints,
    format_metadata_value,
    native_metadata_to_typed,
    parse_number,
    string_metadata_to_typed,
    typed_metadata_to_chroma_format,
    validate_metadata_value,
    validate_typed_metadata,
)

__all__ = [
    "classify",
    "coerce_edit_value",
    "collection_type_hints",
    "format_metadata_value",
    "native_metadata_to_typed",
    "parse_number",
    "string_metadata_to_typed",
    "typed_metadata_to_chroma_format",
    "validate_metadata_value",
    "validate_typed_metadata",
]
