"""Main entry point when executing nanocli as a package.

This allows running the package using python -m nanocli.
"""

from nanocli.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
