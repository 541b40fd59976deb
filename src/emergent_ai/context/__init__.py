"""Project context: scanning and analysis of a project tree."""

from .project_scanner import ProjectAnalysis, ProjectScanner

__all__ = ["ProjectAnalysis", "ProjectScanner"]
