"""gemini-mcp-cache CLI entry point.

JSON-only output for AI coding assistants and scripts.
"""

from dataclasses import replace
from pathlib import Path
from typing import Optional

import click

from gemini_mcp.cli.commands import cache
from gemini_mcp.config import get_config


@click.group()
@click.option(
    "--cache-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Override chunk cache directory.",
)
@click.pass_context
def cli(ctx: click.Context, cache_dir: Optional[Path]) -> None:
    """Inspect and maintain the gemini-mcp chunk cache.

    All commands output JSON response envelopes.
    """
    ctx.ensure_object(dict)
    config = get_config()
    if cache_dir is not None:
        config = replace(
            config, chunk_cache=replace(config.chunk_cache, cache_dir=cache_dir)
        )
    ctx.obj["config"] = config


cli.add_command(cache)


if __name__ == "__main__":
    cli()
