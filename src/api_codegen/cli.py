"""CLI entry point for api-codegen."""

import logging
from fnmatch import fnmatchcase
from pathlib import Path

import click
from pydantic import ValidationError

from api_codegen.generator.engine import UnknownTargetError, generate as generate_files
from api_codegen.generator.targets import TARGETS
from api_codegen.parser.base import ApiDescription, ApiEndpoint, ParseError
from api_codegen.parser.detect import detect_format
from api_codegen.parser.registry import parse as parse_text

FORMAT_CHOICES = ["auto", "openapi", "postman", "html"]


def _parse_doc(doc_path: Path, fmt: str) -> ApiDescription:
    """Parse API document based on format."""
    text = doc_path.read_text(encoding="utf-8")
    if fmt == "auto":
        fmt = detect_format(text).value
        click.echo(f"Detected format: {fmt}")
    try:
        return parse_text(fmt, text)
    except ParseError as e:
        raise click.ClickException(f"Failed to parse {doc_path}: {e}") from e


def _filter_endpoints(endpoints: list[ApiEndpoint], patterns: tuple[str, ...]) -> list[ApiEndpoint]:
    """Keep endpoints matching any ``METHOD /path`` or bare path glob."""
    if not patterns:
        return list(endpoints)
    result = []
    for ep in endpoints:
        for pattern in patterns:
            method, _, path = pattern.strip().rpartition(" ")
            if method and method.strip().upper() != ep.method:
                continue
            if fnmatchcase(ep.path, path):
                result.append(ep)
                break
    return result


def _select(api: ApiDescription, patterns: tuple[str, ...]) -> ApiDescription:
    if not patterns:
        return api
    endpoints = _filter_endpoints(list(api.endpoints), patterns)
    click.echo(f"Selected {len(endpoints)} of {len(api.endpoints)} endpoints.")
    return api.model_copy(update={"endpoints": tuple(endpoints)})


def _generate(api: ApiDescription, target: str) -> dict[str, str]:
    try:
        return generate_files(api, target)
    except UnknownTargetError as e:
        raise click.ClickException(str(e)) from e


def _write_files(files: dict[str, str], output: Path, append: bool) -> int:
    written = 0
    for rel_path, content in files.items():
        file_path = output / rel_path
        if append and file_path.exists():
            click.echo(f"  Skipped {file_path} (exists)")
            continue
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content, encoding="utf-8")
        click.echo(f"  Created {file_path}")
        written += 1
    return written


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """API Codegen: turn API docs into client libraries."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


endpoint_option = click.option(
    "--endpoint",
    "endpoints",
    multiple=True,
    help="Only include matching endpoints: 'METHOD /path' or a path glob like '/pets/*'. Repeatable.",
)
format_option = click.option(
    "--format", "fmt", default="auto", type=click.Choice(FORMAT_CHOICES), help="Document format."
)
target_option = click.option(
    "-t", "--target", required=True, type=click.Choice(list(TARGETS)), help="Client language to generate."
)
append_option = click.option("--append", is_flag=True, help="Keep existing files, only write missing ones.")


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path), help="Output file for the model JSON.")
@format_option
@endpoint_option
def parse(doc_path: Path, output: Path, fmt: str, endpoints: tuple[str, ...]):
    """Parse API documentation into the canonical model (JSON)."""
    click.echo(f"Parsing {doc_path} (format: {fmt})...")
    api = _select(_parse_doc(doc_path, fmt), endpoints)
    click.echo(f"Found {len(api.endpoints)} endpoints.")

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(api.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
    click.echo(f"Model saved to {output}")


@main.command()
@click.argument("model_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path), help="Output directory for generated code.")
@target_option
@append_option
def generate(model_path: Path, output: Path, target: str, append: bool):
    """Generate a client library from a saved model."""
    click.echo(f"Reading model from {model_path}...")
    try:
        api = ApiDescription.model_validate_json(model_path.read_text(encoding="utf-8"))
    except ValidationError as e:
        raise click.ClickException(f"Invalid model file {model_path}: {e}") from e

    click.echo(f"Generating {target} client...")
    files = _generate(api, target)
    written = _write_files(files, output, append)
    click.echo(f"Generated {written} files in {output}")


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path), help="Output directory for generated code.")
@target_option
@format_option
@endpoint_option
@append_option
def run(doc_path: Path, output: Path, target: str, fmt: str, endpoints: tuple[str, ...], append: bool):
    """Full pipeline: parse doc -> generate client."""
    # Step 1: Parse
    click.echo(f"Parsing {doc_path} (format: {fmt})...")
    api = _select(_parse_doc(doc_path, fmt), endpoints)
    click.echo(f"Found {len(api.endpoints)} endpoints.")

    # Step 2: Generate
    click.echo(f"Generating {target} client...")
    files = _generate(api, target)
    written = _write_files(files, output, append)
    click.echo(f"Done! Generated {written} files in {output}")


@main.command()
def targets():
    """List supported client languages."""
    for name in TARGETS:
        click.echo(name)
