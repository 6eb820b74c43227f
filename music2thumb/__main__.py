#!/usr/bin/env python3
"""Entry point for running music2thumb as a module.

This allows the package to be invoked with:
    python -m music2thumb [arguments]
"""

from music2thumb.cli import main

if __name__ == "__main__":
    main()
