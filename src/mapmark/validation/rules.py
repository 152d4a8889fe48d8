"""Validation rules for identifiers and route endpoints.

Rules never raise on bad user input. They return a ValidationResult (or an
EndpointCheck for per-endpoint feedback) that the caller shows to the user.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from enum import Enum
from typing import Self

from pydantic import BaseModel, Field

from mapmark.validation.identifiers import (
    format_point_id,
    is_valid_point_id_format,
    point_id_key,
    spot_name_key,
)


class ValidationResult(BaseModel, frozen=True):
    """Outcome of a validation rule.

    Attributes:
        is_valid: True if the input passed.
        message: Human-readable reason when is_valid is False.
    """

    is_valid: bool
    message: str = ""

    @classmethod
    def ok(cls) -> Self:
        return cls(is_valid=True)

    @classmethod
    def fail(cls, message: str) -> Self:
        return cls(is_valid=False, message=message)

    def __bool__(self) -> bool:
        return self.is_valid


def find_duplicates(values: Iterable[str], key: Callable[[str], str]) -> list[str]:
    """Return the identifiers that occur more than once, in first-seen order.

    Blank values are ignored. Values are compared by ``key``; the value
    reported is the first spelling seen.
    """
    seen: dict[str, str] = {}
    duplicates: list[str] = []
    reported: set[str] = set()
    for value in values:
        if not value or not value.strip():
            continue
        k = key(value)
        if k in seen:
            if k not in reported:
                duplicates.append(seen[k])
                reported.add(k)
        else:
            seen[k] = value.strip()
    return duplicates


def check_duplicate_ids(ids: Iterable[str]) -> ValidationResult:
    """Fail if two non-blank point ids canonicalize to the same id."""
    duplicates = find_duplicates(ids, point_id_key)
    if duplicates:
        return ValidationResult.fail(f"Duplicate point ids: {', '.join(duplicates)}")
    return ValidationResult.ok()


def check_duplicate_spot_names(names: Iterable[str]) -> ValidationResult:
    """Fail if two non-blank spot names differ only in width or case."""
    duplicates = find_duplicates(names, spot_name_key)
    if duplicates:
        return ValidationResult.fail(f"Duplicate spot names: {', '.join(duplicates)}")
    return ValidationResult.ok()


def check_point_id_formats(ids: Iterable[str]) -> ValidationResult:
    """Fail if any non-blank id is not in canonical ``L-dd`` form."""
    bad = [value for value in ids if not is_valid_point_id_format(value)]
    if bad:
        return ValidationResult.fail(f"Point ids not in X-nn form: {', '.join(bad)}")
    return ValidationResult.ok()


def find_spots_by_partial_name(spot_names: Iterable[str], text: str) -> list[str]:
    """Spot names containing ``text``, ignoring case and width.

    Blank search text matches nothing.
    """
    if not text or not text.strip():
        return []
    needle = spot_name_key(text)
    return [name for name in spot_names if name and needle in spot_name_key(name)]


class EndpointStatus(str, Enum):
    """How a route endpoint text relates to the registered points and spots."""

    EMPTY = "empty"
    REGISTERED_POINT = "registered_point"
    SPOT = "spot"
    AMBIGUOUS_SPOTS = "ambiguous_spots"
    MISSING_POINT = "missing_point"
    UNKNOWN = "unknown"


class EndpointCheck(BaseModel, frozen=True):
    """Per-endpoint feedback for the route editor.

    Attributes:
        status: Classification of the typed value.
        matches: Spot names that matched, for SPOT and AMBIGUOUS_SPOTS.
        message: Feedback text; empty when the value is acceptable.
    """

    status: EndpointStatus
    matches: tuple[str, ...] = Field(default_factory=tuple)
    message: str = ""

    @property
    def is_acceptable(self) -> bool:
        return self.status in (
            EndpointStatus.EMPTY,
            EndpointStatus.REGISTERED_POINT,
            EndpointStatus.SPOT,
        )


def classify_endpoint(
    value: str,
    registered_point_ids: Sequence[str],
    spot_names: Sequence[str] = (),
) -> EndpointCheck:
    """Classify a typed route endpoint.

    Checks, in order: exact registered point id, unique partial spot
    match, several partial spot matches, then whether the text at least
    looks like a point id.
    """
    value = value.strip()
    if not value:
        return EndpointCheck(status=EndpointStatus.EMPTY)

    if value in registered_point_ids:
        return EndpointCheck(status=EndpointStatus.REGISTERED_POINT)

    matches = find_spots_by_partial_name(spot_names, value)
    if len(matches) == 1:
        return EndpointCheck(status=EndpointStatus.SPOT, matches=(matches[0],))
    if len(matches) > 1:
        return EndpointCheck(
            status=EndpointStatus.AMBIGUOUS_SPOTS,
            matches=tuple(matches),
            message=f"Several spots match: {', '.join(matches)}",
        )

    if is_valid_point_id_format(value):
        return EndpointCheck(
            status=EndpointStatus.MISSING_POINT,
            message=f"Point {value!r} not found",
        )
    return EndpointCheck(
        status=EndpointStatus.UNKNOWN,
        message="No matching point or spot",
    )


def resolve_endpoint_input(value: str, spot_names: Sequence[str] = ()) -> str:
    """Turn committed endpoint text into the stored endpoint value.

    A unique partial spot match resolves to that spot's full name.
    Anything else is canonicalized as a point id.
    """
    matches = find_spots_by_partial_name(spot_names, value)
    if len(matches) == 1:
        return matches[0]
    return format_point_id(value)


def check_route_references(
    start: str,
    end: str,
    waypoint_count: int,
    registered_point_ids: Sequence[str],
    spot_names: Sequence[str] | None = None,
) -> ValidationResult:
    """Check that a route can be saved.

    Order of checks: start registered, end registered, both set, start
    differs from end, at least one waypoint. An endpoint is registered
    when it equals a point id or a spot name exactly.
    """
    names = set(spot_names or ())
    points = set(registered_point_ids)

    for label, value in (("Start", start), ("End", end)):
        if value and value not in points and value not in names:
            return ValidationResult.fail(
                f"{label} point {value!r} is not registered as a point or spot"
            )

    if not start or not end:
        return ValidationResult.fail("Set both a start and an end point")

    if start == end:
        return ValidationResult.fail("Start and end point are the same")

    if waypoint_count < 1:
        return ValidationResult.fail("A route needs at least one waypoint")

    return ValidationResult.ok()
