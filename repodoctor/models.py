"""Core data models shared across repodoctor components."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Literal, Optional, Tuple

ProjectKind = Literal["generic", "framework-app", "monorepo"]
PackageManager = Literal["npm", "pnpm", "yarn", "bun", "unknown"]
Category = Literal["nextjs", "turbo", "node", "dead"]
Severity = Literal["error", "warning"]

KIND_GENERIC: ProjectKind = "generic"
KIND_FRAMEWORK_APP: ProjectKind = "framework-app"
KIND_MONOREPO: ProjectKind = "monorepo"

ALL_KINDS: frozenset[str] = frozenset({KIND_GENERIC, KIND_FRAMEWORK_APP, KIND_MONOREPO})
CATEGORIES: Tuple[str, ...] = ("nextjs", "turbo", "node", "dead")


@dataclass(frozen=True)
class WorkspaceInfo:
    """One package discovered inside a monorepo."""

    name: str
    path: str
    absolute_path: str
    kind: ProjectKind
    has_manifest: bool


@dataclass(frozen=True)
class ProjectInfo:
    """Snapshot of the detected project, computed once per run."""

    kind: ProjectKind
    name: str
    root: str
    package_manager: PackageManager
    is_monorepo: bool
    uses_static_typing: bool
    version: Optional[str] = None
    workspaces: Optional[Tuple[WorkspaceInfo, ...]] = None
    framework_version: Optional[str] = None
    ui_library_version: Optional[str] = None
    orchestrator_version: Optional[str] = None


@dataclass
class Diagnostic:
    """A single finding reported by one rule against one file."""

    rule_id: str
    file_path: str
    severity: Severity
    message: str
    help: str
    line: Optional[int] = None
    auto_fixable: bool = False


@dataclass
class RuleResult:
    """All diagnostics a rule produced across every scanned root."""

    rule_id: str
    rule_name: str
    category: Category
    passed: bool
    diagnostics: List[Diagnostic] = field(default_factory=list)


@dataclass
class DoctorOptions:
    """Caller-supplied switches for a doctor run."""

    fix: bool = False
    dry_run: bool = False
    category: Optional[str] = None
    project: Optional[str] = None
    workers: Optional[int] = None


@dataclass
class DoctorResult:
    """Top-level output of a doctor run."""

    score: int
    grade: str
    diagnostics: List[Diagnostic]
    project: ProjectInfo
    rule_results: List[RuleResult]
    duration: int
    fixed_count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        workspaces = data["project"].get("workspaces")
        if workspaces is not None:
            data["project"]["workspaces"] = list(workspaces)
        return data


__all__ = [
    "ALL_KINDS",
    "CATEGORIES",
    "Category",
    "Diagnostic",
    "DoctorOptions",
    "DoctorResult",
    "KIND_FRAMEWORK_APP",
    "KIND_GENERIC",
    "KIND_MONOREPO",
    "PackageManager",
    "ProjectInfo",
    "ProjectKind",
    "RuleResult",
    "Severity",
    "WorkspaceInfo",
]
