"""Convention checks for Turborepo-style monorepos, evaluated at the monorepo root."""

from __future__ import annotations

import posixpath
import re
from typing import Dict, List, Set

from ..context import RuleContext
from ..detector import ORCHESTRATOR_CONFIG, merged_dependencies
from ..models import KIND_MONOREPO, Diagnostic
from .base import Rule

_MONOREPO_ONLY = frozenset({KIND_MONOREPO})

WORKSPACE_PROTOCOL = "workspace:"
IMPORTANT_SCRIPTS = ("build", "test", "lint", "dev")
ALLOWED_ROOT_DEPENDENCIES = frozenset({"turbo", "typescript"})
_DEPENDENCY_IN_MESSAGE = re.compile(r'^(\S+) should use "workspace:\*"')


def _workspace_manifest(path: str) -> str:
    return posixpath.join(path, "package.json")


class HasTurboJsonRule(Rule):
    id = "turbo/has-turbo-json"
    name = "Has turbo.json"
    category = "turbo"
    severity = "error"
    description = "Turborepo projects must have a turbo.json configuration"
    help = "Create turbo.json with pipeline configuration at the project root"
    applies_to = _MONOREPO_ONLY

    def check(self, context: RuleContext) -> List[Diagnostic]:
        if context.file_exists(ORCHESTRATOR_CONFIG):
            return []
        manifest = context.read_json("package.json")
        declares_turbo = isinstance(manifest, dict) and "turbo" in merged_dependencies(manifest)
        if not declares_turbo:
            return []
        return [self.diagnostic(ORCHESTRATOR_CONFIG, "Missing turbo.json configuration")]


class WorkspaceDepsRule(Rule):
    id = "turbo/workspace-deps"
    name = "Workspace Protocol"
    category = "turbo"
    severity = "warning"
    description = "Workspace packages should use workspace:* protocol for internal deps"
    help = 'Use "workspace:*" for local package dependencies instead of version numbers'
    applies_to = _MONOREPO_ONLY

    def check(self, context: RuleContext) -> List[Diagnostic]:
        workspaces = context.project.workspaces or ()
        names = {workspace.name for workspace in workspaces}
        results: List[Diagnostic] = []
        for workspace in workspaces:
            manifest_path = _workspace_manifest(workspace.path)
            manifest = context.read_json(manifest_path)
            if not isinstance(manifest, dict):
                continue
            for dependency, version in merged_dependencies(manifest).items():
                if dependency in names and isinstance(version, str) and not version.startswith(WORKSPACE_PROTOCOL):
                    results.append(
                        self.diagnostic(
                            manifest_path,
                            f'{dependency} should use "workspace:*" instead of "{version}"',
                            auto_fixable=True,
                        )
                    )
        return results

    def fix(self, context: RuleContext, diagnostic: Diagnostic) -> bool:
        # The message names exactly one dependency; only that entry is rewritten.
        match = _DEPENDENCY_IN_MESSAGE.match(diagnostic.message)
        if match is None:
            return False
        dependency = match.group(1)
        if dependency not in {workspace.name for workspace in context.project.workspaces or ()}:
            return False
        manifest = context.read_json(diagnostic.file_path)
        if not isinstance(manifest, dict):
            return False
        changed = False
        for section in ("dependencies", "devDependencies"):
            deps = manifest.get(section)
            if not isinstance(deps, dict):
                continue
            version = deps.get(dependency)
            if isinstance(version, str) and not version.startswith(WORKSPACE_PROTOCOL):
                deps[dependency] = "workspace:*"
                changed = True
        if changed:
            context.write_json(diagnostic.file_path, manifest)
        return changed


class SharedTsConfigRule(Rule):
    id = "turbo/shared-tsconfig"
    name = "Shared TypeScript Config"
    category = "turbo"
    severity = "warning"
    description = "Workspace packages should extend a shared tsconfig"
    help = "Create a shared tsconfig.base.json at root and have workspaces extend it"
    applies_to = _MONOREPO_ONLY

    def check(self, context: RuleContext) -> List[Diagnostic]:
        if not (context.file_exists("tsconfig.json") or context.file_exists("tsconfig.base.json")):
            return []
        results: List[Diagnostic] = []
        for workspace in context.project.workspaces or ():
            tsconfig_path = posixpath.join(workspace.path, "tsconfig.json")
            content = context.read_file(tsconfig_path)
            if content and '"extends"' not in content:
                results.append(
                    self.diagnostic(tsconfig_path, f"{workspace.name} tsconfig doesn't extend a shared base config")
                )
        return results


class NoRootAppDepsRule(Rule):
    id = "turbo/no-root-app-deps"
    name = "No Root App Dependencies"
    category = "turbo"
    severity = "warning"
    description = "Root package.json should only have devDependencies, not app-level deps"
    help = "Move application dependencies to workspace packages, keep only tooling in root"
    applies_to = _MONOREPO_ONLY

    def check(self, context: RuleContext) -> List[Diagnostic]:
        manifest = context.read_json("package.json")
        deps = manifest.get("dependencies") if isinstance(manifest, dict) else None
        if not isinstance(deps, dict):
            return []
        app_deps = [name for name in deps if name not in ALLOWED_ROOT_DEPENDENCIES]
        if not app_deps:
            return []
        suffix = "..." if len(app_deps) > 5 else ""
        return [
            self.diagnostic(
                "package.json",
                f"Root has {len(app_deps)} application dependencies: {', '.join(app_deps[:5])}{suffix}",
                help="Move these to workspace packages; root should only have devDependencies",
            )
        ]


class PipelineCoverageRule(Rule):
    id = "turbo/pipeline-coverage"
    name = "Pipeline Coverage"
    category = "turbo"
    severity = "warning"
    description = "All workspace scripts should be covered in turbo.json pipeline"
    help = "Add missing tasks to turbo.json to benefit from caching"
    applies_to = _MONOREPO_ONLY

    def check(self, context: RuleContext) -> List[Diagnostic]:
        config = context.read_json(ORCHESTRATOR_CONFIG)
        if not isinstance(config, dict):
            return []
        # Turborepo 2 renamed "pipeline" to "tasks".
        pipeline = config.get("tasks") or config.get("pipeline") or {}
        tasks = set(pipeline) if isinstance(pipeline, dict) else set()

        scripts: Set[str] = set()
        for workspace in context.project.workspaces or ():
            manifest = context.read_json(_workspace_manifest(workspace.path))
            declared = manifest.get("scripts") if isinstance(manifest, dict) else None
            if isinstance(declared, dict):
                scripts.update(declared)

        return [
            self.diagnostic(
                ORCHESTRATOR_CONFIG,
                f'Script "{script}" exists in workspaces but not in turbo pipeline',
            )
            for script in IMPORTANT_SCRIPTS
            if script in scripts and script not in tasks
        ]


class WorkspaceNamingRule(Rule):
    id = "turbo/workspace-naming"
    name = "Consistent Workspace Naming"
    category = "turbo"
    severity = "warning"
    description = "Workspace packages should use consistent naming (e.g. @scope/name)"
    help = "Use @org/package-name format for workspace packages"
    applies_to = _MONOREPO_ONLY

    def check(self, context: RuleContext) -> List[Diagnostic]:
        workspaces = context.project.workspaces or ()
        if len(workspaces) < 2:
            return []
        groups: Dict[bool, List[str]] = {True: [], False: []}
        for workspace in workspaces:
            groups[workspace.name.startswith("@")].append(workspace.name)
        if not groups[True] or not groups[False]:
            return []
        return [
            self.diagnostic(
                _workspace_manifest(workspace.path),
                f"{workspace.name} is not scoped, other packages use @scope/name format",
            )
            for workspace in workspaces
            if not workspace.name.startswith("@")
        ]


TURBO_RULES = (
    HasTurboJsonRule,
    WorkspaceDepsRule,
    SharedTsConfigRule,
    NoRootAppDepsRule,
    PipelineCoverageRule,
    WorkspaceNamingRule,
)

__all__ = [
    "TURBO_RULES",
    "HasTurboJsonRule",
    "NoRootAppDepsRule",
    "PipelineCoverageRule",
    "SharedTsConfigRule",
    "WorkspaceDepsRule",
    "WorkspaceNamingRule",
]
