"""Identifier formatting and validation rules."""

from mapmark.validation.identifiers import (
    fold_width,
    format_point_id,
    format_spot_name,
    is_valid_point_id_format,
    point_id_key,
    spot_name_key,
)
from mapmark.validation.rules import (
    EndpointCheck,
    EndpointStatus,
    ValidationResult,
    check_duplicate_ids,
    check_duplicate_spot_names,
    check_point_id_formats,
    check_route_references,
    classify_endpoint,
    find_duplicates,
    find_spots_by_partial_name,
    resolve_endpoint_input,
)

__all__ = [
    "EndpointCheck",
    "EndpointStatus",
    "ValidationResult",
    "check_duplicate_ids",
    "check_duplicate_spot_names",
    "check_point_id_formats",
    "check_route_references",
    "classify_endpoint",
    "find_duplicates",
    "find_spots_by_partial_name",
    "fold_width",
    "format_point_id",
    "format_spot_name",
    "is_valid_point_id_format",
    "point_id_key",
    "spot_name_key",
]
