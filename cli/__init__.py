"""CLI package for the transfer tool

Provides the `transfer-cli` command: authorize against a destination and
import container files into it.
"""

from cli.main import main

__all__ = [
    "main",
]
