"""
Entry point for running guardian as a module.

Usage:
    python -m guardian check ./src
    python -m guardian --help
"""

import sys
from guardian.cli import main

if __name__ == "__main__":
    sys.exit(main())
