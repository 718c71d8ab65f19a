"""
CLI interface for the multikey save cache step.

Inputs are bound from flags, falling back to the step's environment
variables (verbose, key_path_pairs, compression_level, custom_tar_args)
and then to an optional YAML config file.
"""

import json
from pathlib import Path
from typing import Any, Optional

import click
from dotenv import load_dotenv

from multikey_cache import __version__
from multikey_cache.config import (
    INPUT_COMPRESSION_LEVEL,
    INPUT_CUSTOM_TAR_ARGS,
    INPUT_KEY_PATH_PAIRS,
    INPUT_VERBOSE,
    StepInput,
    load_input,
    read_input_file,
)
from multikey_cache.errors import (
    AllSavesFailedError,
    ConfigError,
    NoValidEntriesError,
)
from multikey_cache.parser import parse_key_path_pairs
from multikey_cache.stores import CacheStore, StoreRegistry
from multikey_cache.utils import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="multikey-cache")
@click.option(
    "--env-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Load environment variables from a dotenv file before binding inputs",
)
@click.option(
    "--log-format",
    type=click.Choice(["pretty", "plain"]),
    default="pretty",
    show_default=True,
    envvar="MULTIKEY_CACHE_LOG_FORMAT",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write structured (JSON) log records to this file",
)
@click.pass_context
def main(ctx, env_file: Optional[Path], log_format: str, log_file: Optional[Path]):
    """
    multikey-cache - Save several cache entries in one CI step.

    Each line of key_path_pairs is one entry:

        [u] node-modules-abc123 = node_modules

        pip-packages-xyz789 = venv/, .cache/pip
    """
    if env_file is not None:
        load_dotenv(env_file, override=False)

    ctx.ensure_object(dict)
    ctx.obj["log_format"] = log_format
    ctx.obj["log_file"] = log_file


def _bind_input(
    config_path: Optional[Path],
    overrides: dict[str, Any],
) -> StepInput:
    """Merge config file values with flag/env values and validate."""
    raw: dict[str, Any] = {}
    if config_path is not None:
        raw.update(read_input_file(config_path))
    raw.update({k: v for k, v in overrides.items() if v is not None})
    raw.setdefault(INPUT_VERBOSE, False)
    return load_input(raw)


def _resolve_store(store_name: Optional[str], save_command: Optional[str], dry_run: bool) -> CacheStore:
    if dry_run:
        store_name = "noop"
    elif store_name is None:
        if not save_command:
            raise click.UsageError(
                "No cache store configured. Pass --save-command, --store or --dry-run."
            )
        store_name = "command"

    registry = StoreRegistry.create_default()
    try:
        return registry.create(store_name, command=save_command)
    except KeyError as e:
        raise click.UsageError(str(e.args[0]))
    except ConfigError as e:
        raise click.UsageError(str(e))


key_path_pairs_option = click.option(
    "--key-path-pairs",
    envvar=INPUT_KEY_PATH_PAIRS,
    help="Newline separated `KEY = PATH1, PATH2` lines (env: key_path_pairs)",
)
config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="YAML file with step inputs",
)


@main.command("save")
@key_path_pairs_option
@click.option("--verbose/--no-verbose", default=None, envvar=INPUT_VERBOSE, help="Enable debug logging (env: verbose)")
@click.option("--compression-level", type=int, envvar=INPUT_COMPRESSION_LEVEL, help="Compression level 1-19 (env: compression_level)")
@click.option("--custom-tar-args", envvar=INPUT_CUSTOM_TAR_ARGS, help="Extra archiver arguments (env: custom_tar_args)")
@config_option
@click.option("--store", "store_name", envvar="MULTIKEY_CACHE_STORE", help="Cache store name (see `multikey-cache stores`)")
@click.option("--save-command", envvar="MULTIKEY_CACHE_SAVE_COMMAND", help="External command run once per entry")
@click.option("--dry-run", is_flag=True, help="Parse and log without saving anything")
@click.option("--json", "as_json", is_flag=True, help="Print the save outcome as JSON")
@click.pass_context
def save(
    ctx,
    key_path_pairs: Optional[str],
    verbose: Optional[bool],
    compression_level: Optional[int],
    custom_tar_args: Optional[str],
    config_path: Optional[Path],
    store_name: Optional[str],
    save_command: Optional[str],
    dry_run: bool,
    as_json: bool,
):
    """
    Save every cache entry concurrently.

    Exits non-zero when no entry is valid or when every save failed.
    Partial failures are reported as warnings.

    Examples:

        multikey-cache save --key-path-pairs "deps = node_modules" --save-command "cache-tool save"

        key_path_pairs="deps = node_modules" multikey-cache save --dry-run
    """
    from multikey_cache.step import run_step

    try:
        step_input = _bind_input(config_path, {
            INPUT_VERBOSE: verbose,
            INPUT_KEY_PATH_PAIRS: key_path_pairs,
            INPUT_COMPRESSION_LEVEL: compression_level,
            INPUT_CUSTOM_TAR_ARGS: custom_tar_args,
        })
    except ConfigError as e:
        click.echo(f"✗ Failed to parse inputs: {e}", err=True)
        raise SystemExit(1)

    setup_logging(
        verbose=step_input.verbose,
        log_format=ctx.obj["log_format"],
        log_file=ctx.obj["log_file"],
    )

    store = _resolve_store(store_name, save_command, dry_run)

    if dry_run:
        click.echo("=== DRY RUN MODE === (nothing is saved)", err=as_json)

    try:
        outcome = run_step(step_input, store)
    except NoValidEntriesError as e:
        click.echo(f"✗ key-path pair evaluation failure: {e}", err=True)
        raise SystemExit(1)
    except AllSavesFailedError as e:
        if as_json:
            click.echo(json.dumps(e.outcome.to_dict(), indent=2))
        click.echo(f"✗ {e} ({e.outcome.failed}/{e.outcome.attempted} entries failed)", err=True)
        raise SystemExit(1)

    if as_json:
        click.echo(json.dumps(outcome.to_dict(), indent=2))
        return

    if outcome.failures:
        click.echo(f"⚠ {outcome.failed}/{outcome.attempted} cache entries failed to save")
    click.echo(f"✓ Saved {outcome.succeeded}/{outcome.attempted} cache entries")


@main.command("parse")
@key_path_pairs_option
@config_option
@click.option("--json", "as_json", is_flag=True, help="Print entries as JSON")
@click.pass_context
def parse(ctx, key_path_pairs: Optional[str], config_path: Optional[Path], as_json: bool):
    """
    Validate key_path_pairs and print the resulting entries.

    Nothing is saved.
    """
    setup_logging(log_format=ctx.obj["log_format"], log_file=ctx.obj["log_file"])

    if key_path_pairs is None and config_path is not None:
        try:
            key_path_pairs = read_input_file(config_path).get(INPUT_KEY_PATH_PAIRS)
        except ConfigError as e:
            click.echo(f"✗ Failed to parse inputs: {e}", err=True)
            raise SystemExit(1)

    if not key_path_pairs:
        raise click.UsageError("No key_path_pairs provided")

    try:
        parsed = parse_key_path_pairs(str(key_path_pairs))
    except NoValidEntriesError as e:
        for err in e.errors:
            click.echo(f"  line {err.line_number}: {err}", err=True)
        click.echo(f"✗ {e}", err=True)
        raise SystemExit(1)

    if as_json:
        click.echo(json.dumps({
            "entries": [entry.to_dict() for entry in parsed.entries.values()],
            "errors": [{"line": err.line_number, "error": str(err)} for err in parsed.errors],
        }, indent=2))
        return

    for entry in parsed.entries.values():
        marker = " [unique]" if entry.is_unique else ""
        click.echo(f"{entry.key}{marker}:")
        for path in entry.paths:
            click.echo(f"  {path}")
    for err in parsed.errors:
        click.echo(f"✗ line {err.line_number}: {err}", err=True)


@main.command("stores")
def list_stores():
    """List available cache stores."""
    for name in StoreRegistry.create_default().list_stores():
        click.echo(name)


if __name__ == "__main__":
    main()
