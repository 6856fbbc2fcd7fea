"""Allow running the CLI via ``python -m gemini_mcp.cli``."""

from gemini_mcp.cli.main import cli

if __name__ == "__main__":
    cli()
