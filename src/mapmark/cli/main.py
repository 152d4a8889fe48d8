"""mapmark CLI.

Command-line helpers for annotation files: canonicalize point ids and
check exported points, spots and route JSON files.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer

from mapmark import __version__
from mapmark.data.exports import (
    AnyExport,
    ExportFormatError,
    ExportKind,
    PointsExport,
    RouteExport,
    SpotsExport,
    read_export,
)
from mapmark.utils.logging import configure_logging, get_logger
from mapmark.validation.identifiers import format_point_id, is_valid_point_id_format
from mapmark.validation.rules import (
    ValidationResult,
    check_duplicate_ids,
    check_duplicate_spot_names,
    check_point_id_formats,
    check_route_references,
)

app = typer.Typer(
    name="mapmark",
    help="mapmark: point, route, spot and area annotation tools",
    add_completion=False,
)


# =============================================================================
# Commands
# =============================================================================


@app.command()
def version(
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Show version information."""
    if json_output:
        typer.echo(json.dumps({"version": __version__}))
    else:
        typer.echo(f"mapmark {__version__}")


@app.command("format-id")
def format_id(
    values: Annotated[list[str], typer.Argument(help="Point ids to canonicalize")],
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Print the canonical form of each point id (e.g. a1 -> A-01)."""
    rows = []
    for value in values:
        formatted = format_point_id(value)
        rows.append(
            {"input": value, "id": formatted, "valid": is_valid_point_id_format(formatted)}
        )

    if json_output:
        typer.echo(json.dumps(rows, ensure_ascii=False, indent=2))
        return
    for row in rows:
        suffix = "" if row["valid"] else "  (not in X-nn form)"
        typer.echo(f"{row['id']}{suffix}")


@app.command()
def check(
    file: Annotated[
        Path,
        typer.Argument(
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            help="Exported points, spots or route JSON file",
        ),
    ],
    points_file: Annotated[
        Path | None,
        typer.Option(
            "--points",
            exists=True,
            dir_okay=False,
            help="Points export to check route endpoints against",
        ),
    ] = None,
    verbose: Annotated[
        int,
        typer.Option("--verbose", "-v", count=True, help="Increase verbosity (-v, -vv)"),
    ] = 0,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Validate an exported JSON file. Exits with 1 when it is invalid."""
    _configure_logging(verbose)
    logger = get_logger(__name__)

    try:
        export = read_export(file)
        kind = _kind_of(export)
        problems = [
            result.message for result in _check_export(export, points_file) if not result
        ]
    except ExportFormatError as e:
        logger.info("Export rejected", path=str(file), error=e.message)
        _report(file, None, [e.message], json_output)
        raise typer.Exit(1) from None

    logger.info("Export checked", path=str(file), kind=kind.value, problems=len(problems))
    _report(file, kind, problems, json_output)
    raise typer.Exit(1 if problems else 0)


# =============================================================================
# Helpers
# =============================================================================


def _configure_logging(verbose: int) -> None:
    """Configure logging based on verbosity level."""
    if verbose == 0:
        level = "WARNING"
    elif verbose == 1:
        level = "INFO"
    else:  # verbose >= 2
        level = "DEBUG"

    configure_logging(level=level)


def _kind_of(export: AnyExport) -> ExportKind:
    if isinstance(export, RouteExport):
        return ExportKind.ROUTE
    if isinstance(export, SpotsExport):
        return ExportKind.SPOTS
    return ExportKind.POINTS


def _count_check(field: str, declared: int, actual: int) -> ValidationResult:
    if declared != actual:
        return ValidationResult.fail(f"{field} is {declared} but the file has {actual} entries")
    return ValidationResult.ok()


def _check_export(export: AnyExport, points_file: Path | None) -> list[ValidationResult]:
    if isinstance(export, PointsExport):
        ids = [p.id for p in export.points if p.id.strip()]
        return [
            _count_check("totalPoints", export.total_points, len(export.points)),
            check_duplicate_ids(ids),
            check_point_id_formats(ids),
        ]

    if isinstance(export, SpotsExport):
        return [
            _count_check("totalSpots", export.total_spots, len(export.spots)),
            check_duplicate_spot_names(s.name for s in export.spots),
        ]

    info = export.route_info
    if points_file is not None:
        reference = read_export(points_file)
        if not isinstance(reference, PointsExport):
            raise ExportFormatError("--points must be a points export", points_file)
        registered = [p.id for p in reference.points if p.id.strip()]
    else:
        # Without a points file only the route's own shape can be checked.
        registered = [v for v in (info.start_point, info.end_point) if v]
    return [
        _count_check("waypointCount", info.waypoint_count, len(export.waypoints)),
        check_route_references(
            info.start_point, info.end_point, len(export.waypoints), registered
        ),
    ]


def _report(
    file: Path, kind: ExportKind | None, problems: list[str], json_output: bool
) -> None:
    if json_output:
        typer.echo(
            json.dumps(
                {
                    "file": str(file),
                    "kind": kind.value if kind is not None else None,
                    "valid": not problems,
                    "problems": problems,
                },
                ensure_ascii=False,
                indent=2,
            )
        )
        return
    if not problems:
        typer.echo(f"OK: {file} ({kind.value if kind else 'unknown'})")
        return
    for problem in problems:
        typer.echo(f"Error: {problem}", err=True)


if __name__ == "__main__":  # pragma: no cover
    app()
