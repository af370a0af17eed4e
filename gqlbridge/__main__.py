"""
gqlbridge - Main Entry Point

Usage:
    python -m gqlbridge --help
    python -m gqlbridge serve --schema schema.graphql
    python -m gqlbridge sdl --schema schema.graphql
    python -m gqlbridge version
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
