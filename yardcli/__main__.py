"""Main entry point when executing yardcli as a package.

This allows running the package using python -m yardcli.
"""

from yardcli.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
