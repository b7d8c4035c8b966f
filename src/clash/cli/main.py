"""
Main CLI entry point for Clash vesting.
"""

import sys

from clash.cli.vesting_commands import cli


def main():
    """Console script entry point."""
    return cli(obj={})


if __name__ == "__main__":
    sys.exit(main() or 0)
