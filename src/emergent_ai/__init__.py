"""
Emergent AI

MCP tool server that gives an AI agent controlled access to a project:
file reading and writing with backups and rollback, guarded shell
execution, project analysis, git operations and test runs.
"""

__version__ = "1.0.0"
