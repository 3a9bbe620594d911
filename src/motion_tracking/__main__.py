"""
Entry point for running motion tracking as a module.

Usage:
    python -m motion_tracking SOURCE [-c config.yaml]
"""

from .cli import main

if __name__ == "__main__":
    main()
