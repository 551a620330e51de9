"""Entry point for running lincli as a module.

This allows running the application with:
    python -m lincli [OPTIONS] COMMAND [ARGS]
"""

from lincli.cli import app

if __name__ == "__main__":
    app()
