"""
Emergent AI CLI Module

Contains the command-line interface:
- main: CLI entry point with typer
- output: rich terminal output
"""

from .main import app, main

__all__ = ["app", "main"]
