# ruff: noqa: I001
"""CLI for the ``revolut_transformer`` package.

This module exposes callable command handlers (``cmd_transform``,
``cmd_categorize``) and a Typer-based console interface. Environment
variables (notably ``OPENAI_API_KEY``) are loaded from a local ``.env`` using
``python-dotenv`` before delegating to command logic. Business logic lives in
:mod:`revolut_transformer.session` and the modules it drives.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from typer.models import OptionInfo

from .config import Settings
from .logging_setup import configure_logging
from .models import DateField, TypeFilter


# ---- Small module-level helpers used by CLI commands -------------------------


def _err(message: str) -> None:
    typer.echo(message, err=True)


def _resolve_settings(
    settings_file: Path | None,
    **overrides: object,
) -> Settings:
    """Settings from a stored document when given, else the environment.

    Explicit CLI overrides win over either source.
    """

    base = Settings.from_json_file(settings_file) if settings_file else Settings.from_env()
    return base.with_overrides(**overrides)


def _read_text(csv_path: Path) -> str:
    # utf-8-sig drops a leading byte-order mark written by some exporters.
    return csv_path.read_text(encoding="utf-8-sig")


# ---- Command handlers --------------------------------------------------------


def cmd_transform(
    csv_path: Path,
    *,
    output: Path | None = None,
    settings: Settings,
    classify: bool = False,
    header: bool = False,
) -> int:
    """Transform a Revolut export and write the normalized CSV.

    Behavior
    --------
    - Reads ``csv_path`` and decodes it; parsing issues and missing columns
      are reported on stderr without stopping.
    - When ``classify`` is set, runs the external classifier; a failure is
      reported on stderr and heuristic categories remain in place.
    - Writes the type-filtered rows (headerless unless ``header``) to
      ``output`` or stdout.

    Returns ``0`` on success and ``1`` when the input cannot be read or the
    output cannot be written.
    """

    from .session import TransformSession

    try:
        text = _read_text(csv_path)
    except FileNotFoundError:
        _err(f"Error: File not found: {csv_path}")
        return 1
    except PermissionError:
        _err(f"Error: Permission denied: {csv_path}")
        return 1
    except (OSError, UnicodeDecodeError) as e:
        _err(f"Error: Unexpected failure reading '{csv_path}': {e}")
        return 1

    session = TransformSession(settings)
    session.load_csv(text)
    if classify:
        session.classify()
    for message in session.errors:
        _err(f"Warning: {message}")

    payload = session.to_csv(header=header)
    if output is None:
        typer.echo(payload, nl=False)
    else:
        try:
            output.write_text(payload, encoding="utf-8", newline="")
        except OSError as e:
            _err(f"Error: failed to write '{output}': {e}")
            return 1
        _err(f"Wrote {len(session.export_rows())} rows to {output}")
    return 0


def cmd_categorize(csv_path: Path, *, settings: Settings, classify: bool = False) -> int:
    """Print ``<name>\\t<category>`` for every distinct description."""

    from .session import TransformSession

    try:
        text = _read_text(csv_path)
    except FileNotFoundError:
        _err(f"Error: File not found: {csv_path}")
        return 1
    except (OSError, UnicodeDecodeError) as e:
        _err(f"Error: Unexpected failure reading '{csv_path}': {e}")
        return 1

    session = TransformSession(settings)
    session.load_csv(text)
    if classify:
        session.classify()
    for message in session.errors:
        _err(f"Warning: {message}")

    for name in session.unique_names:
        typer.echo(f"{name}\t{session.category_map.resolve(name)}")
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Normalize Revolut CSV exports into a headerless Date/Type/Amount/... CSV, "
        "optionally categorizing merchants with OpenAI. Loads OPENAI_API_KEY from a "
        "local .env before running."
    ),
)

# Shared by both commands through ``Annotated``.
CSV_PATH_OPTION: OptionInfo = typer.Option(
    ...,  # required
    "--csv-path",
    help="Path to a Revolut transaction CSV export",
    dir_okay=False,
    file_okay=True,
    exists=False,  # allow non-existent here; the handler reports nice errors
)


@app.command("transform")
def transform_cmd(
    csv_path: Annotated[Path, CSV_PATH_OPTION],
    *,
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Write the CSV here instead of stdout."
    ),
    settings_file: Path | None = typer.Option(
        None, "--settings-file", help="JSON settings document (websiteName, dateField, ...)."
    ),
    website_name: str | None = typer.Option(None, help="Label for the Source column."),
    source: str | None = typer.Option(None, help="Label for the Account column."),
    date_field: DateField | None = typer.Option(None, help="Column supplying the date."),
    only_completed: bool | None = typer.Option(
        None, "--only-completed/--all-states", help="Keep only COMPLETED rows."
    ),
    type_filter: TypeFilter | None = typer.Option(None, help="Rows to export."),
    model: str | None = typer.Option(None, help="Classifier model identifier."),
    classify: bool = typer.Option(
        False, "--classify/--no-classify", help="Categorize names with OpenAI."
    ),
    header: bool = typer.Option(False, help="Prepend a header line to the output."),
) -> None:
    """Transform an export into the normalized CSV."""

    try:
        settings = _resolve_settings(
            settings_file,
            website_name=website_name,
            source=source,
            date_field=date_field,
            only_completed=only_completed,
            type_filter=type_filter,
            classifier_model=model,
        )
    except (OSError, ValidationError) as e:
        _err(f"Error: invalid settings: {e}")
        raise typer.Exit(1) from e

    raise typer.Exit(
        cmd_transform(csv_path, output=output, settings=settings, classify=classify, header=header)
    )


@app.command("categorize")
def categorize_cmd(
    csv_path: Annotated[Path, CSV_PATH_OPTION],
    *,
    settings_file: Path | None = typer.Option(
        None, "--settings-file", help="JSON settings document (websiteName, dateField, ...)."
    ),
    only_completed: bool | None = typer.Option(
        None, "--only-completed/--all-states", help="Keep only COMPLETED rows."
    ),
    model: str | None = typer.Option(None, help="Classifier model identifier."),
    classify: bool = typer.Option(
        False, "--classify/--no-classify", help="Categorize names with OpenAI."
    ),
) -> None:
    """Print the category chosen for each distinct description."""

    try:
        settings = _resolve_settings(
            settings_file, only_completed=only_completed, classifier_model=model
        )
    except (OSError, ValidationError) as e:
        _err(f"Error: invalid settings: {e}")
        raise typer.Exit(1) from e

    raise typer.Exit(cmd_categorize(csv_path, settings=settings, classify=classify))


@app.callback()
def _root() -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures package logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


if __name__ == "__main__":  # pragma: no cover
    # Running as a module: `python -m revolut_transformer.cli`
    app()
