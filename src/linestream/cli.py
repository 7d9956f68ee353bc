"""
Command-line line reader.

Streams a local file or an HTTP(S) resource and prints it line by line.
"""

import asyncio
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import click

from . import __version__
from .streaming import LineStreamDecoder, open_file, open_url
from .utils.config import DecoderConfig, LineStreamConfig, LoggingConfig, load_config
from .utils.errors import LineStreamError, error_context
from .utils.logging import setup_logging, get_logger

logger = get_logger("linestream.cli")


def _is_url(target: str) -> bool:
    return target.startswith(("http://", "https://"))


async def _open_source(target: str, config: DecoderConfig):
    if _is_url(target):
        return await open_url(target, chunk_size=config.chunk_size)
    return open_file(target, chunk_size=config.chunk_size)


async def process_lines(
    target: str,
    config: DecoderConfig,
    number: bool = False,
    max_lines: Optional[int] = None,
) -> int:
    """
    Print the lines of ``target`` to stdout.

    Returns:
        Number of lines printed
    """
    count = 0
    with error_context("cli", "process_lines", target=target):
        source = await _open_source(target, config)
        async with LineStreamDecoder.from_config(source, config) as lines:
            # Check the cap before each pull
            while max_lines is None or count < max_lines:
                try:
                    line = await lines.__anext__()
                except StopAsyncIteration:
                    break
                count += 1
                click.echo(f"{count:6d}\t{line}" if number else line)
            logger.info("lines_processed", target=target, **lines.stats)
    return count


async def _resolve_config(
    config_path: Optional[Path],
    overrides: Dict[str, Any],
) -> LineStreamConfig:
    config = await load_config([config_path] if config_path else None)
    if overrides:
        config.decoder = DecoderConfig(**{**config.decoder.model_dump(), **overrides})
    return config


@click.command()
@click.argument("target", required=False)
@click.option("--encoding", "-e", default=None, help="Text encoding of the source (default utf-8)")
@click.option("--strict/--lenient", default=None, help="Fail on malformed bytes instead of substituting U+FFFD")
@click.option("--chunk-size", type=click.IntRange(min=1), default=None, help="Bytes per read")
@click.option("--max-line-length", type=click.IntRange(min=1), default=None, help="Fail on longer lines")
@click.option("--number", "-n", is_flag=True, help="Number the output lines")
@click.option("--max-lines", type=click.IntRange(min=0), default=None, help="Stop after this many lines")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              default=None, help="JSON, YAML or TOML configuration file")
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
              default=None, help="Logging level")
@click.option("--version", is_flag=True, help="Show version")
def main(
    target: Optional[str],
    encoding: Optional[str],
    strict: Optional[bool],
    chunk_size: Optional[int],
    max_line_length: Optional[int],
    number: bool,
    max_lines: Optional[int],
    config_path: Optional[Path],
    log_level: Optional[str],
    version: bool,
):
    """Print the lines of a file or URL."""
    if version:
        click.echo(f"linestream v{__version__}")
        return

    if not target:
        raise click.UsageError("Missing argument 'TARGET'.")

    overrides: Dict[str, Any] = {
        key: value for key, value in (
            ("encoding", encoding),
            ("strict", strict),
            ("chunk_size", chunk_size),
            ("max_line_length", max_line_length),
        ) if value is not None
    }

    # Keep stdout for lines while the configuration is loading
    setup_logging(log_level=log_level or LoggingConfig().level, enable_json=False)

    try:
        config = asyncio.run(_resolve_config(config_path, overrides))
    except (LineStreamError, ValueError) as e:
        raise click.BadParameter(str(e)) from e

    level = log_level or config.logging.level
    setup_logging(
        app_name=config.app_name,
        log_level=level,
        log_dir=config.logging.directory,
        enable_json=config.logging.format == "json",
    )

    try:
        asyncio.run(process_lines(target, config.decoder, number=number, max_lines=max_lines))
    except KeyboardInterrupt:
        logger.info("interrupted")
        sys.exit(130)
    except LineStreamError as e:
        click.echo(f"linestream: {e.message}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
