"""Entry point for ``python -m locator``."""

from locator.cli import cli

if __name__ == "__main__":
    cli()
