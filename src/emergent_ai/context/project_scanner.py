"""
Project Scanner

Read-only view of a project tree: file inventory, language and framework
detection, glob search and a short textual summary for AI prompts.
"""

import fnmatch
import json
import logging
import os
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_IGNORE_PATTERNS = ["node_modules", "dist", "build", ".git"]
IGNORED_FILE_PATTERNS = ["*.log"]

LANGUAGE_MAP = {
    ".js": "JavaScript",
    ".jsx": "JavaScript",
    ".ts": "TypeScript",
    ".tsx": "TypeScript",
    ".py": "Python",
    ".go": "Go",
    ".rs": "Rust",
    ".java": "Java",
    ".rb": "Ruby",
    ".php": "PHP",
    ".c": "C",
    ".cpp": "C++",
    ".cs": "C#",
}

NODE_FRAMEWORKS = {
    "react": "React",
    "vue": "Vue",
    "@angular/core": "Angular",
    "next": "Next.js",
    "express": "Express",
    "@nestjs/core": "NestJS",
    "fastify": "Fastify",
}

PYTHON_FRAMEWORKS = {
    "django": "Django",
    "flask": "Flask",
    "fastapi": "FastAPI",
}

PYTHON_MANIFESTS = ["requirements.txt", "pyproject.toml", "setup.cfg", "setup.py"]


@dataclass
class ProjectAnalysis:
    """
    Result of analyzing a project tree.

    Attributes:
        total_files: Number of files scanned
        file_types: Count of files per extension ("no-extension" for none)
        structure: Directory -> file names
        languages: Detected languages, sorted
        frameworks: Detected frameworks, in detection order
    """
    total_files: int = 0
    file_types: dict[str, int] = field(default_factory=dict)
    structure: dict[str, list[str]] = field(default_factory=dict)
    languages: list[str] = field(default_factory=list)
    frameworks: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_files": self.total_files,
            "file_types": self.file_types,
            "structure": self.structure,
            "languages": self.languages,
            "frameworks": self.frameworks,
        }


class ProjectScanner:
    """
    Scans a project directory.

    Example:
        scanner = ProjectScanner(Path.cwd())
        analysis = scanner.analyze()
        print(scanner.build_context())
    """

    def __init__(
        self,
        root: Path | str,
        ignore_patterns: list[str] | None = None,
        max_context_size: int = 50000,
    ):
        """
        Args:
            root: Project root directory
            ignore_patterns: Directory names (or fnmatch patterns) to skip
            max_context_size: Maximum length of build_context() output
        """
        self.root = Path(root).resolve()
        self.ignore_patterns = list(ignore_patterns) if ignore_patterns is not None else list(DEFAULT_IGNORE_PATTERNS)
        self.max_context_size = max_context_size

    def _is_ignored_dir(self, name: str) -> bool:
        return any(fnmatch.fnmatch(name, pattern) for pattern in self.ignore_patterns)

    def _is_ignored_file(self, name: str) -> bool:
        return any(fnmatch.fnmatch(name, pattern) for pattern in IGNORED_FILE_PATTERNS)

    def scan(self) -> list[str]:
        """
        List project files as POSIX paths relative to the root, sorted.

        Ignored directories are not descended into.
        """
        files = []
        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames[:] = sorted(d for d in dirnames if not self._is_ignored_dir(d))
            rel_dir = Path(dirpath).relative_to(self.root)
            for filename in filenames:
                if self._is_ignored_file(filename):
                    continue
                files.append((rel_dir / filename).as_posix())
        files.sort()
        return files

    def analyze(self) -> ProjectAnalysis:
        """Analyze file types, directory structure, languages and frameworks."""
        files = self.scan()
        file_types: Counter[str] = Counter()
        structure: dict[str, list[str]] = {}
        languages = set()

        for file in files:
            path = Path(file)
            ext = path.suffix or "no-extension"
            file_types[ext] += 1
            structure.setdefault(path.parent.as_posix(), []).append(path.name)
            if path.suffix in LANGUAGE_MAP:
                languages.add(LANGUAGE_MAP[path.suffix])

        return ProjectAnalysis(
            total_files=len(files),
            file_types=dict(file_types),
            structure=structure,
            languages=sorted(languages),
            frameworks=self.detect_frameworks(),
        )

    def detect_frameworks(self) -> list[str]:
        frameworks = []

        deps = self.node_dependencies()
        for package, framework in NODE_FRAMEWORKS.items():
            if package in deps:
                frameworks.append(framework)

        python_manifest = self._python_manifest_text()
        for package, framework in PYTHON_FRAMEWORKS.items():
            if package in python_manifest and framework not in frameworks:
                frameworks.append(framework)

        return frameworks

    def node_dependencies(self) -> dict[str, str]:
        """Merged dependencies and devDependencies from package.json."""
        package_json = self.read_package_json()
        if not package_json:
            return {}
        deps = {}
        deps.update(package_json.get("dependencies") or {})
        deps.update(package_json.get("devDependencies") or {})
        return deps

    def read_package_json(self) -> dict[str, Any] | None:
        path = self.root / "package.json"
        if not path.is_file():
            return None
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Cannot parse {path}: {e}")
            return None
        return data if isinstance(data, dict) else None

    def is_python_project(self) -> bool:
        return any((self.root / name).is_file() for name in PYTHON_MANIFESTS + ["pytest.ini", "tox.ini"])

    def _python_manifest_text(self) -> str:
        chunks = []
        for name in PYTHON_MANIFESTS:
            path = self.root / name
            if path.is_file():
                try:
                    chunks.append(path.read_text(encoding="utf-8", errors="replace").lower())
                except OSError as e:
                    logger.warning(f"Cannot read {path}: {e}")
        return "\n".join(chunks)

    def find_files(self, pattern: str) -> list[str]:
        """Return project files matching a glob pattern (e.g. "src/**/*.py")."""
        # "**/" also matches zero directories.
        root_pattern = pattern[3:] if pattern.startswith("**/") else None
        matches = []
        for file in self.scan():
            if fnmatch.fnmatch(file, pattern) or Path(file).match(pattern):
                matches.append(file)
            elif root_pattern and fnmatch.fnmatch(file, root_pattern):
                matches.append(file)
        return matches

    def recent_files(self, limit: int = 5) -> list[str]:
        """Most recently modified project files, newest first."""
        files = self.scan()
        files.sort(key=lambda f: os.path.getmtime(self.root / f), reverse=True)
        return files[:limit]

    def build_context(self) -> str:
        """Build a short project summary for prompts, capped at max_context_size."""
        analysis = self.analyze()
        lines = [f"Project at {self.root}"]

        if analysis.languages:
            lines.append(f"Languages: {', '.join(analysis.languages)}")
        if analysis.frameworks:
            lines.append(f"Frameworks: {', '.join(analysis.frameworks)}")
        lines.append(f"Files: {analysis.total_files}")

        top_types = sorted(analysis.file_types.items(), key=lambda kv: (-kv[1], kv[0]))[:5]
        if top_types:
            lines.append("Main file types: " + ", ".join(f"{ext} ({count})" for ext, count in top_types))

        recent = self.recent_files()
        if recent:
            lines.append("Recently modified: " + ", ".join(recent))

        lines.append("")
        lines.append("Structure:")
        for directory in sorted(analysis.structure):
            lines.append(f"  {directory}/: {', '.join(sorted(analysis.structure[directory]))}")

        context = "\n".join(lines)
        if len(context) > self.max_context_size:
            context = context[: self.max_context_size] + "\n... (truncated)"
        return context
