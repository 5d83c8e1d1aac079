"""Dead-code heuristics: orphan files, unused exports and unused components.

None of these rules parse source code. They build approximate views of the
project with regular expressions and deliberately err on the side of
silence: imports are over-resolved, results are capped, and the rules back
off entirely when the project is too large or the import graph looks
incomplete.
"""

from __future__ import annotations

import posixpath
import re
from collections import Counter
from dataclasses import dataclass
from typing import Iterable, List, Set

from ..context import RuleContext
from ..models import KIND_FRAMEWORK_APP, KIND_GENERIC, Diagnostic
from .base import JSX_FILES, SOURCE_FILES, Rule, read_all

_APPLICATION_KINDS = frozenset({KIND_GENERIC, KIND_FRAMEWORK_APP})

SOURCE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx")
RESOLUTION_SUFFIXES = ("",) + SOURCE_EXTENSIONS + tuple(f"/index{ext}" for ext in SOURCE_EXTENSIONS)

MAX_ORPHAN_RATIO = 0.3
MAX_ORPHAN_RESULTS = 20
MAX_UNUSED_EXPORT_RESULTS = 15
MAX_SCANNED_FILES = 300

# Files loaded by a framework or tool by convention rather than imported.
ENTRY_POINT_PATTERNS = tuple(
    re.compile(pattern)
    for pattern in (
        r"(?:^|/)(page|layout|route|loading|error|global-error|not-found|template|default)\.(tsx|jsx|ts|js)$",
        r"(?:^|/)middleware\.(ts|js)$",
        r"(?:^|/)index\.(ts|tsx|js|jsx)$",
        r"\.config\.(ts|js|mjs|cjs)$",
        r"\.(test|spec|stories)\.(ts|tsx|js|jsx)$",
        r"(?:^|/)__tests__/",
        r"(?:^|/)cli\.(ts|js)$",
        r"\.d\.ts$",
    )
)

# import x from "a" / export * from "a" / import "a" / import("a") / require("a")
IMPORT_SPECIFIER = re.compile(
    r"""(?:\bfrom\s*|\bimport\s*\(?\s*|\brequire\s*\(\s*)['"]([^'"\n]+)['"]"""
)

EXPORT_DECLARATIONS = tuple(
    re.compile(pattern)
    for pattern in (
        r"export\s+(?:async\s+)?function\*?\s+(\w+)",
        r"export\s+(?:const|let|var)\s+(\w+)",
        r"export\s+(?:abstract\s+)?class\s+(\w+)",
        r"export\s+(?:interface|type|enum)\s+(\w+)",
    )
)

# Names the framework looks up by convention.
RESERVED_EXPORTS = frozenset(
    {"default", "metadata", "GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"}
)
LIBRARY_ENTRY_FIELDS = ("main", "module", "exports", "types", "typings")
BARREL_FILE = re.compile(r"(?:^|/)index\.(ts|tsx|js|jsx)$")
COMPONENT_FILE = re.compile(r"(?:^|/)[A-Z][a-zA-Z]+\.(tsx|jsx)$")
_WORD = re.compile(r"\w+")


@dataclass
class ExportedSymbol:
    name: str
    file: str
    line: int


def is_entry_point(path: str) -> bool:
    return any(pattern.search(path) for pattern in ENTRY_POINT_PATTERNS)


def _strip_source_extension(path: str) -> str:
    for ext in SOURCE_EXTENSIONS:
        if path.endswith(ext):
            return path[: -len(ext)]
    return path


def resolve_candidates(importer: str, specifier: str) -> Set[str]:
    """Every path a relative ``specifier`` in ``importer`` could refer to."""
    resolved = posixpath.normpath(posixpath.join(posixpath.dirname(importer), specifier))
    bases = {resolved, _strip_source_extension(resolved)}
    return {base + suffix for base in bases for suffix in RESOLUTION_SUFFIXES}


def build_import_graph(context: RuleContext, files: Iterable[str]) -> Set[str]:
    """Collect the set of paths referenced by relative imports in ``files``."""
    imported: Set[str] = set()
    for path in files:
        content = context.read_file(path)
        if not content:
            continue
        for match in IMPORT_SPECIFIER.finditer(content):
            specifier = match.group(1)
            if specifier.startswith("."):
                imported.update(resolve_candidates(path, specifier))
    return imported


class OrphanFilesRule(Rule):
    id = "dead/orphan-files"
    name = "Orphan Files"
    category = "dead"
    severity = "warning"
    description = "Files not imported by any other file in the project"
    help = "Delete orphan files or import them where needed"
    applies_to = _APPLICATION_KINDS
    bias = (
        "Path-alias and package-name imports are not resolved; results are suppressed when "
        "30% or more of files look orphaned and capped at 20."
    )

    def check(self, context: RuleContext) -> List[Diagnostic]:
        files = context.find_files(SOURCE_FILES)
        if not files:
            return []
        imported = build_import_graph(context, files)

        orphans: List[str] = []
        for path in files:
            if is_entry_point(path):
                continue
            without_ext = _strip_source_extension(path)
            if {path, without_ext, f"{without_ext}/index"} & imported:
                continue
            orphans.append(path)

        # A high orphan ratio means the graph is incomplete (aliases, globs), not dead code.
        if not orphans or len(orphans) >= len(files) * MAX_ORPHAN_RATIO:
            return []
        return [
            self.diagnostic(path, "File appears unused, not imported anywhere")
            for path in orphans[:MAX_ORPHAN_RESULTS]
        ]


class UnusedExportsRule(Rule):
    id = "dead/unused-exports"
    name = "Unused Exports"
    category = "dead"
    severity = "warning"
    description = "Exported functions/types that aren't imported anywhere"
    help = "Remove unused exports or make them private"
    applies_to = _APPLICATION_KINDS
    bias = (
        "Counts whole-word occurrences, so a same-named identifier elsewhere hides an unused "
        "export (false negatives); publishable libraries and projects over 300 files are skipped."
    )

    def check(self, context: RuleContext) -> List[Diagnostic]:
        manifest = context.read_json("package.json")
        if isinstance(manifest, dict) and any(manifest.get(key) for key in LIBRARY_ENTRY_FIELDS):
            return []

        files = context.find_files(SOURCE_FILES)
        if len(files) > MAX_SCANNED_FILES:
            return []

        symbols: List[ExportedSymbol] = []
        chunks: List[str] = []
        for path in files:
            content = context.read_file(path)
            if not content:
                continue
            chunks.append(content)
            for number, line in enumerate(content.splitlines(), start=1):
                for pattern in EXPORT_DECLARATIONS:
                    match = pattern.search(line)
                    if match:
                        symbols.append(ExportedSymbol(name=match.group(1), file=path, line=number))

        # Whole-word occurrence counts; identical to counting \bname\b matches per symbol.
        occurrences = Counter(_WORD.findall("\n".join(chunks)))

        unused = [
            symbol
            for symbol in symbols
            if symbol.name not in RESERVED_EXPORTS
            and not BARREL_FILE.search(symbol.file)
            and occurrences[symbol.name] <= 1
        ]
        return [
            self.diagnostic(symbol.file, f'Export "{symbol.name}" appears unused', line=symbol.line)
            for symbol in unused[:MAX_UNUSED_EXPORT_RESULTS]
        ]


class UnusedComponentsRule(Rule):
    id = "dead/unused-components"
    name = "Unused Components"
    category = "dead"
    severity = "warning"
    description = "React components defined but never imported/used"
    help = "Remove unused components or use them in your pages"
    applies_to = frozenset({KIND_FRAMEWORK_APP})
    bias = "Relies on PascalCase file names matching the component name (false negatives otherwise)."

    def check(self, context: RuleContext) -> List[Diagnostic]:
        files = context.find_files(SOURCE_FILES)
        if len(files) > MAX_SCANNED_FILES:
            return []
        components = [path for path in context.find_files(JSX_FILES) if COMPONENT_FILE.search(path)]
        if not components:
            return []
        corpus = read_all(context, files)

        results: List[Diagnostic] = []
        for path in components:
            name = posixpath.splitext(posixpath.basename(path))[0]
            escaped = re.escape(name)
            references = re.findall(rf"<{escaped}[\s/>]|import.*{escaped}", corpus)
            if len(references) <= 1:
                results.append(self.diagnostic(path, f'Component "{name}" appears unused'))
        return results


DEAD_CODE_RULES = (
    OrphanFilesRule,
    UnusedExportsRule,
    UnusedComponentsRule,
)

__all__ = [
    "DEAD_CODE_RULES",
    "OrphanFilesRule",
    "UnusedComponentsRule",
    "UnusedExportsRule",
    "build_import_graph",
    "is_entry_point",
    "resolve_candidates",
]
