"""Command-line interface for the filesystem codec."""

import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import click

from . import __version__
from .error_handler import ErrorHandler
from .fs_codec import FsCodec
from .models.convert import to_value
from .models.shape import Shape, shape_from_dict
from .types import CodecError, OverwritePolicy
from .utils.validation import ValidationUtils


def _configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format="%(asctime)s %(name)s %(levelname)s %(message)s")


def _fail(message: str) -> None:
    click.echo(f"❌ {message}", err=True)
    sys.exit(1)


def _report(error: CodecError) -> None:
    response = ErrorHandler().handle_error(error)
    click.echo(f"❌ {error}", err=True)
    click.echo(f"   • {response.suggested_action}", err=True)
    sys.exit(1)


def _read_json(path: Path, what: str) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        _fail(f"Cannot read {what} {path}: {e}")


def _load_shape(path: Path) -> Shape:
    description = _read_json(path, "shape")
    try:
        return shape_from_dict(description)
    except (ValueError, CodecError) as e:
        _fail(f"Invalid shape in {path}: {e}")


def _json_default(obj: Any) -> Any:
    if isinstance(obj, bytes):
        return list(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _codec(overwrite: str = "fail", lenient: bool = False, allow_unknown: bool = False,
           workers: Optional[int] = None, fsync: bool = True) -> FsCodec:
    return FsCodec(
        overwrite=OverwritePolicy(overwrite),
        strict_scalars=not lenient,
        allow_unknown_entries=allow_unknown,
        fsync=fsync,
        enable_parallel_processing=workers != 1,
        max_workers=workers if workers and workers > 1 else None,
    )


shape_option = click.option(
    '--shape', '-s', 'shape_file', required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='JSON file describing the shape of the value'
)
workers_option = click.option(
    '--workers', '-w', type=click.IntRange(min=1), default=None,
    help='Worker threads for the root entries (1 = sequential, default: auto)'
)
verbose_option = click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')


@click.group()
@click.version_option(version=__version__)
def main():
    """fs-codec - Convert between structured JSON values and filesystem trees."""
    pass


@main.command()
@click.argument('input_file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument('destination', type=click.Path(path_type=Path))
@shape_option
@click.option('--overwrite', type=click.Choice([policy.value for policy in OverwritePolicy]),
              default=OverwritePolicy.FAIL.value, help='What to do with an existing destination')
@click.option('--fsync/--no-fsync', default=True, help='Sync every file to disk before renaming it into place')
@workers_option
@verbose_option
def serialize(input_file: Path, destination: Path, shape_file: Path, overwrite: str,
              fsync: bool, workers: Optional[int], verbose: bool):
    """Write the JSON value in INPUT_FILE as a tree rooted at DESTINATION."""
    _configure_logging(verbose)
    shape = _load_shape(shape_file)
    data = _read_json(input_file, "input")

    click.echo(f"Serializing {input_file} to {destination}...")
    try:
        with _codec(overwrite=overwrite, workers=workers, fsync=fsync) as codec:
            result = codec.dump(data, shape, destination)
    except CodecError as e:
        _report(e)

    click.echo(f"✅ Wrote {result.file_count} files and {result.directory_count} directories "
               f"to {result.output_path}")
    click.echo(f"📊 Total size: {result.total_size} bytes")


@main.command()
@click.argument('source', type=click.Path(path_type=Path))
@shape_option
@click.option('--output', '-o', type=click.Path(dir_okay=False, path_type=Path),
              help='Output JSON file path (default: stdout)')
@click.option('--lenient', is_flag=True, help='Ignore whitespace around bool, number and tag content')
@click.option('--allow-unknown', is_flag=True, help='Ignore undeclared entries in record directories')
@workers_option
@verbose_option
def deserialize(source: Path, shape_file: Path, output: Optional[Path], lenient: bool,
                allow_unknown: bool, workers: Optional[int], verbose: bool):
    """Read the tree rooted at SOURCE back into JSON."""
    _configure_logging(verbose)
    shape = _load_shape(shape_file)

    try:
        with _codec(lenient=lenient, allow_unknown=allow_unknown, workers=workers) as codec:
            data = codec.load(source, shape)
    except CodecError as e:
        _report(e)

    text = json.dumps(data, indent=2, ensure_ascii=False, default=_json_default)
    if output:
        output.write_text(text + "\n", encoding="utf-8")
        click.echo(f"✅ Successfully wrote JSON to {output}")
    else:
        click.echo(text)


@main.command()
@click.argument('input_file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@shape_option
@verbose_option
def check(input_file: Path, shape_file: Path, verbose: bool):
    """Check that the JSON value in INPUT_FILE fits the shape and round-trips."""
    _configure_logging(verbose)
    shape = _load_shape(shape_file)
    data = _read_json(input_file, "input")

    try:
        value = to_value(data, shape)
    except (ValueError, CodecError) as e:
        _fail(f"Value does not match shape: {e}")

    result = ValidationUtils.validate_value(value, shape)
    for warning in result.warnings:
        click.echo(f"⚠️  {warning}")
    if not result.is_valid:
        click.echo("❌ Value does not match shape:", err=True)
        for error in result.errors:
            click.echo(f"   • {error.location}: {error.message}", err=True)
        sys.exit(1)
    click.echo("✅ Value matches shape")


if __name__ == '__main__':
    main()
