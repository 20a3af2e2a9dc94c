#!/usr/bin/env python
"""
Thin wrapper script to invoke the contrib_stats CLI.

Running ``python contribstats.py`` is equivalent to running the
``contribstats`` console script installed via ``pyproject.toml``.
"""

from contrib_stats.cli import main


if __name__ == "__main__":
    main(prog_name="contribstats")
