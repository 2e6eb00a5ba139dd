#!/usr/bin/env python3

from stockdio_hub.cli.interface import run_cli


def main() -> None:
    """Entry point for Stockdio Hub CLI."""
    run_cli()


if __name__ == "__main__":
    main()
