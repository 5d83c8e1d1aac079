"""Project classification and monorepo workspace discovery."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

import yaml

from .logging import get_logger
from .models import (
    KIND_FRAMEWORK_APP,
    KIND_GENERIC,
    KIND_MONOREPO,
    PackageManager,
    ProjectInfo,
    ProjectKind,
    WorkspaceInfo,
)

MANIFEST = "package.json"
ORCHESTRATOR_CONFIG = "turbo.json"
WORKSPACE_LISTING = "pnpm-workspace.yaml"
FRAMEWORK_DEPENDENCY = "next"

# Checked in order; the first lockfile present decides the package manager.
LOCKFILES: tuple[tuple[str, PackageManager], ...] = (
    ("pnpm-lock.yaml", "pnpm"),
    ("yarn.lock", "yarn"),
    ("bun.lockb", "bun"),
    ("bun.lock", "bun"),
    ("package-lock.json", "npm"),
)

logger = get_logger("detector")


def detect_project(root: str | Path) -> ProjectInfo:
    """Inspect ``root`` and describe the project living there."""
    root_path = Path(root).expanduser().resolve()
    if not root_path.exists():
        raise FileNotFoundError(f"Project path not found: {root}")
    if not root_path.is_dir():
        raise NotADirectoryError(f"Project path is not a directory: {root}")

    manifest = load_manifest(root_path)
    deps = merged_dependencies(manifest)

    has_orchestrator = (root_path / ORCHESTRATOR_CONFIG).exists()
    is_monorepo = (
        has_orchestrator
        or bool(manifest.get("workspaces"))
        or (root_path / WORKSPACE_LISTING).exists()
    )

    kind: ProjectKind = KIND_GENERIC
    if has_orchestrator:
        kind = KIND_MONOREPO
    elif FRAMEWORK_DEPENDENCY in deps:
        kind = KIND_FRAMEWORK_APP

    workspaces = None
    if is_monorepo:
        workspaces = tuple(discover_workspaces(root_path, manifest))
        logger.debug("Discovered %d workspaces under %s", len(workspaces), root_path)

    return ProjectInfo(
        kind=kind,
        name=_as_str(manifest.get("name")) or root_path.name,
        root=str(root_path),
        version=_as_str(manifest.get("version")),
        package_manager=detect_package_manager(root_path),
        is_monorepo=is_monorepo,
        workspaces=workspaces,
        uses_static_typing=(root_path / "tsconfig.json").exists(),
        framework_version=_as_str(deps.get("next")),
        ui_library_version=_as_str(deps.get("react")),
        orchestrator_version=_as_str(deps.get("turbo")),
    )


def detect_package_manager(root: Path) -> PackageManager:
    for filename, manager in LOCKFILES:
        if (root / filename).exists():
            return manager
    return "unknown"


def load_manifest(directory: Path) -> Dict[str, Any]:
    """Return the parsed package.json in ``directory`` or an empty dict."""
    try:
        data = json.loads((directory / MANIFEST).read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def merged_dependencies(manifest: Dict[str, Any]) -> Dict[str, Any]:
    """Union of runtime and dev dependencies, dev entries winning on clashes."""
    merged: Dict[str, Any] = {}
    for key in ("dependencies", "devDependencies"):
        section = manifest.get(key)
        if isinstance(section, dict):
            merged.update(section)
    return merged


def workspace_patterns(root: Path, manifest: Dict[str, Any]) -> List[str]:
    """Collect workspace globs from package.json or pnpm-workspace.yaml."""
    declared = manifest.get("workspaces")
    if declared:
        if isinstance(declared, dict):
            declared = declared.get("packages")
        if not isinstance(declared, list):
            return []
        return [item for item in declared if isinstance(item, str)]

    listing = root / WORKSPACE_LISTING
    try:
        text = listing.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return []
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        logger.debug("Ignoring unparsable %s: %s", WORKSPACE_LISTING, exc)
        return []
    if not isinstance(data, dict):
        return []
    packages = data.get("packages")
    if not isinstance(packages, list):
        return []
    return [item for item in packages if isinstance(item, str)]


def discover_workspaces(root: Path, manifest: Dict[str, Any]) -> List[WorkspaceInfo]:
    workspaces: List[WorkspaceInfo] = []
    seen: Set[str] = set()

    for pattern in workspace_patterns(root, manifest):
        pattern = pattern.strip().strip("/")
        if not pattern or pattern.startswith("!"):
            continue
        if pattern.startswith("./"):
            pattern = pattern[2:]

        base, wildcard = _split_pattern(pattern)
        base_dir = root / base if base else root
        if wildcard:
            try:
                candidates = sorted(
                    entry
                    for entry in base_dir.iterdir()
                    if entry.is_dir() and not entry.name.startswith(".") and entry.name != "node_modules"
                )
            except OSError:
                continue
        else:
            candidates = [base_dir] if base_dir.is_dir() else []

        for directory in candidates:
            rel_path = directory.relative_to(root).as_posix()
            if rel_path in seen or rel_path == ".":
                continue
            seen.add(rel_path)
            workspaces.append(_describe_workspace(root, directory, rel_path))

    return workspaces


def _split_pattern(pattern: str) -> tuple[str, bool]:
    """Strip a trailing wildcard segment, returning the base and whether one was present."""
    for suffix in ("/**", "/*", "**", "*"):
        if pattern.endswith(suffix):
            return pattern[: -len(suffix)].rstrip("/"), True
    return pattern, False


def _describe_workspace(root: Path, directory: Path, rel_path: str) -> WorkspaceInfo:
    has_manifest = (directory / MANIFEST).exists()
    manifest = load_manifest(directory) if has_manifest else {}
    kind: ProjectKind = KIND_GENERIC
    if FRAMEWORK_DEPENDENCY in merged_dependencies(manifest):
        kind = KIND_FRAMEWORK_APP
    return WorkspaceInfo(
        name=_as_str(manifest.get("name")) or directory.name,
        path=rel_path,
        absolute_path=str(root / rel_path),
        kind=kind,
        has_manifest=has_manifest,
    )


def _as_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


__all__ = [
    "LOCKFILES",
    "detect_package_manager",
    "detect_project",
    "discover_workspaces",
    "load_manifest",
    "merged_dependencies",
    "workspace_patterns",
]
