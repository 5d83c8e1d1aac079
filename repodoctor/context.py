"""Sandboxed filesystem access handed to rule checks."""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Any, List, Pattern, Sequence

from .models import ProjectInfo

IGNORED_DIRS = frozenset(
    {
        "node_modules",
        ".next",
        ".git",
        "dist",
        "build",
        ".turbo",
        ".pnpm-store",
        "coverage",
        ".cache",
        ".vercel",
        "__pycache__",
    }
)

DEFAULT_MAX_DEPTH = 6


@dataclass
class IgnoreRule:
    """Exclusion pattern configured via .repodoctor.yml."""

    pattern: str
    directory_only: bool
    anchored: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            return rel_path.startswith(f"{self.pattern}/")

        return any(fnmatchcase(part, self.pattern) for part in rel_path.split("/"))


def build_ignore_rules(patterns: Sequence[str]) -> List[IgnoreRule]:
    """Translate gitignore-style exclude patterns into matchers."""
    rules: List[IgnoreRule] = []
    for raw in patterns:
        pattern = raw.strip()
        if not pattern or pattern.startswith("#"):
            continue
        directory_only = pattern.endswith("/")
        if directory_only:
            pattern = pattern[:-1]
        anchored = pattern.startswith("/")
        if anchored:
            pattern = pattern[1:]
        rules.append(
            IgnoreRule(
                pattern=pattern,
                directory_only=directory_only,
                anchored=anchored,
                has_slash="/" in pattern,
            )
        )
    return rules


class RuleContext:
    """Read-only view of one scan root.

    Paths passed in and returned are relative to ``root`` and use forward
    slashes. Read helpers never raise; they return ``None``/``False`` when a
    file is missing or unreadable. The write helpers exist for rule fixes
    and are never called during checks.
    """

    def __init__(
        self,
        root: str | Path,
        project: ProjectInfo,
        *,
        is_workspace: bool = False,
        relative_root: str = "",
        ignore_rules: Sequence[IgnoreRule] = (),
    ) -> None:
        self.root = Path(root)
        self.project = project
        self.is_workspace = is_workspace
        self.relative_root = relative_root.strip("/")
        self._ignore_rules = list(ignore_rules)

    def read_file(self, relative_path: str) -> str | None:
        try:
            return self._resolve(relative_path).read_text(encoding="utf-8")
        except (OSError, RuntimeError, UnicodeDecodeError, ValueError):
            return None

    def file_exists(self, relative_path: str) -> bool:
        try:
            return self._resolve(relative_path).exists()
        except (OSError, RuntimeError, ValueError):
            return False

    def read_json(self, relative_path: str) -> Any | None:
        text = self.read_file(relative_path)
        if text is None:
            return None
        try:
            return json.loads(text)
        except ValueError:
            return None

    def find_files(self, pattern: str | Pattern[str], max_depth: int = DEFAULT_MAX_DEPTH) -> List[str]:
        """Return sorted relative paths whose path matches ``pattern``."""
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        results: List[str] = []
        self._walk(self.root, "", 0, max_depth, regex, results)
        return results

    def write_file(self, relative_path: str, content: str) -> None:
        target = self._resolve(relative_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")

    def write_json(self, relative_path: str, data: Any) -> None:
        self.write_file(relative_path, json.dumps(data, indent=2) + "\n")

    def _walk(
        self,
        directory: Path,
        rel_dir: str,
        depth: int,
        max_depth: int,
        regex: Pattern[str],
        results: List[str],
    ) -> None:
        if depth > max_depth:
            return
        try:
            entries = sorted(os.scandir(directory), key=lambda entry: entry.name)
        except OSError:
            return
        for entry in entries:
            rel_path = f"{rel_dir}/{entry.name}" if rel_dir else entry.name
            try:
                is_dir = entry.is_dir()
            except OSError:
                continue
            if is_dir:
                if entry.name in IGNORED_DIRS or entry.name.startswith("."):
                    continue
                if self._is_excluded(rel_path, True):
                    continue
                self._walk(Path(entry.path), rel_path, depth + 1, max_depth, regex, results)
            elif regex.search(rel_path) and not self._is_excluded(rel_path, False):
                results.append(rel_path)

    def _is_excluded(self, rel_path: str, is_dir: bool) -> bool:
        if not self._ignore_rules:
            return False
        project_path = f"{self.relative_root}/{rel_path}" if self.relative_root else rel_path
        return any(rule.matches(project_path, is_dir) for rule in self._ignore_rules)

    def _resolve(self, relative_path: str) -> Path:
        root = self.root.resolve()
        target = (root / relative_path).resolve()
        if target != root and root not in target.parents:
            raise ValueError(f"Path escapes scan root: {relative_path}")
        return target


__all__ = ["DEFAULT_MAX_DEPTH", "IGNORED_DIRS", "IgnoreRule", "RuleContext", "build_ignore_rules"]
