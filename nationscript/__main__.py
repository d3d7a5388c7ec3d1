"""Main entry point when executing nationscript as a package.

This allows running the package using python -m nationscript.
"""

from nationscript.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
