"""Doctor pipeline: detect, resolve roots, run rules, score and optionally fix."""

from __future__ import annotations

import logging
import posixpath
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .config import ConfigError, DoctorConfig, load_config
from .context import IgnoreRule, RuleContext, build_ignore_rules
from .detector import detect_project, load_manifest, merged_dependencies
from .logging import get_logger
from .models import (
    CATEGORIES,
    KIND_MONOREPO,
    Diagnostic,
    DoctorOptions,
    DoctorResult,
    ProjectInfo,
    RuleResult,
)
from .rules import Rule, discover_rules
from .scoring import calculate_score, grade_for


@dataclass
class ScanRoot:
    """A directory the rules are evaluated against."""

    path: Path
    project: ProjectInfo
    kind: str
    is_workspace: bool = False
    relative_root: str = ""


@dataclass
class _CheckOutcome:
    root: ScanRoot
    rule: Rule
    # Paths relative to ``root``; None when the rule raised.
    diagnostics: Optional[List[Diagnostic]]


class Doctor:
    """Coordinates a diagnostic run over a project and its workspaces."""

    def __init__(self, rules: Optional[Iterable[Rule]] = None) -> None:
        self._rule_overrides = list(rules) if rules is not None else None
        self.logger = get_logger("orchestrator")

    def run(self, directory: str | Path, options: DoctorOptions | None = None) -> DoctorResult:
        """Diagnose the project at ``directory``.

        Raises ``FileNotFoundError``/``NotADirectoryError`` when the directory
        cannot be scanned and ``ValueError`` for an unknown category. Faults
        inside individual rules never escape.
        """
        options = options or DoctorOptions()
        if options.category is not None and options.category not in CATEGORIES:
            raise ValueError(f"Unknown rule category: {options.category}")

        start = time.perf_counter()
        project = detect_project(directory)
        self.logger.info("Starting doctor run for %s (%s)", project.root, project.kind)

        config = self._load_config(Path(project.root))
        roots = self.resolve_roots(project, options.project)
        self.logger.debug("Resolved %d scan roots", len(roots))

        rules = self._select_rules(config, options.category)
        pairs = [(root, rule) for root in roots for rule in rules if rule.applies(root.kind)]
        self.logger.debug("Evaluating %d rule/root pairs from %d rules", len(pairs), len(rules))

        ignore_rules = build_ignore_rules(config.exclude_paths)
        workers = options.workers or config.workers or 1
        outcomes = self._execute(pairs, ignore_rules, workers)
        diagnostics, rule_results = self._aggregate(outcomes)

        fixed_count: Optional[int] = None
        if options.fix:
            if options.dry_run:
                fixable = sum(1 for diagnostic in diagnostics if diagnostic.auto_fixable)
                self.logger.info("Dry-run: %d fixable diagnostics left untouched", fixable)
                fixed_count = 0
            else:
                fixed_count = self._apply_fixes(outcomes, ignore_rules)

        score = calculate_score(diagnostics)
        grade = grade_for(score)
        duration = int((time.perf_counter() - start) * 1000)
        self.logger.info("Doctor score for %s: %d (%s)", project.name, score, grade)

        return DoctorResult(
            score=score,
            grade=grade,
            diagnostics=diagnostics,
            project=project,
            rule_results=rule_results,
            duration=duration,
            fixed_count=fixed_count,
        )

    def resolve_roots(self, project: ProjectInfo, workspace_filter: str | None = None) -> List[ScanRoot]:
        """Return the project root plus, for monorepos, each selected workspace."""
        root_path = Path(project.root)
        if not project.is_monorepo:
            return [ScanRoot(path=root_path, project=project, kind=project.kind)]

        # The monorepo root only receives monorepo and root-level hygiene rules;
        # application rules run per workspace.
        roots = [ScanRoot(path=root_path, project=project, kind=KIND_MONOREPO)]
        for workspace in project.workspaces or ():
            if workspace_filter and workspace_filter not in workspace.name and workspace_filter not in workspace.path:
                continue
            workspace_path = Path(workspace.absolute_path)
            manifest = load_manifest(workspace_path)
            deps = merged_dependencies(manifest)
            workspace_project = replace(
                project,
                kind=workspace.kind,
                name=workspace.name,
                root=workspace.absolute_path,
                version=_as_str(manifest.get("version")),
                is_monorepo=False,
                workspaces=None,
                uses_static_typing=project.uses_static_typing or (workspace_path / "tsconfig.json").exists(),
                framework_version=_as_str(deps.get("next")),
                ui_library_version=_as_str(deps.get("react")),
            )
            roots.append(
                ScanRoot(
                    path=workspace_path,
                    project=workspace_project,
                    kind=workspace.kind,
                    is_workspace=True,
                    relative_root=workspace.path,
                )
            )
        if workspace_filter and len(roots) == 1:
            self.logger.warning("No workspace matches '%s'", workspace_filter)
        return roots

    def _load_config(self, root: Path) -> DoctorConfig:
        try:
            return load_config(root)
        except ConfigError as exc:
            self.logger.warning("Ignoring invalid configuration: %s", exc)
            return DoctorConfig(root=root)

    def _select_rules(self, config: DoctorConfig, category: str | None) -> List[Rule]:
        categories: Sequence[str] | None = [category] if category else (config.rules.categories or None)
        if self._rule_overrides is None:
            return discover_rules(categories=categories, disabled=config.rules.disabled)
        disabled = set(config.rules.disabled)
        return [
            rule
            for rule in self._rule_overrides
            if rule.id not in disabled and (not categories or rule.category in categories)
        ]

    def _execute(
        self,
        pairs: Sequence[Tuple[ScanRoot, Rule]],
        ignore_rules: Sequence[IgnoreRule],
        workers: int,
    ) -> List[_CheckOutcome]:
        def _run(pair: Tuple[ScanRoot, Rule]) -> _CheckOutcome:
            root, rule = pair
            return _CheckOutcome(root=root, rule=rule, diagnostics=self._run_check(root, rule, ignore_rules))

        if workers <= 1 or len(pairs) <= 1:
            return [_run(pair) for pair in pairs]
        # Checks are read-only, so they can share the filesystem; map() keeps pair order.
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="repodoctor-check") as pool:
            return list(pool.map(_run, pairs))

    def _run_check(
        self,
        root: ScanRoot,
        rule: Rule,
        ignore_rules: Sequence[IgnoreRule],
    ) -> Optional[List[Diagnostic]]:
        context = self._build_context(root, ignore_rules)
        try:
            return list(rule.check(context))
        except Exception as exc:
            self._log_exception(f"Rule {rule.id} failed on {root.path}", exc)
            return None

    def _aggregate(self, outcomes: Sequence[_CheckOutcome]) -> Tuple[List[Diagnostic], List[RuleResult]]:
        diagnostics: List[Diagnostic] = []
        results: Dict[str, RuleResult] = {}
        for outcome in outcomes:
            rewritten = [
                _rewrite_path(diagnostic, outcome.root.relative_root) for diagnostic in outcome.diagnostics or []
            ]
            rule = outcome.rule
            result = results.get(rule.id)
            if result is None:
                result = RuleResult(
                    rule_id=rule.id,
                    rule_name=rule.name,
                    category=rule.category,
                    passed=True,
                )
                results[rule.id] = result
            result.diagnostics.extend(rewritten)
            result.passed = result.passed and not rewritten
            diagnostics.extend(rewritten)
        return diagnostics, list(results.values())

    def _apply_fixes(self, outcomes: Sequence[_CheckOutcome], ignore_rules: Sequence[IgnoreRule]) -> int:
        fixed = 0
        contexts: Dict[Path, RuleContext] = {}
        # Serial on purpose: several fixes may rewrite the same manifest.
        for outcome in outcomes:
            rule = outcome.rule
            if not outcome.diagnostics or not rule.can_fix():
                continue
            root = outcome.root
            context = contexts.get(root.path)
            if context is None:
                context = contexts[root.path] = self._build_context(root, ignore_rules)
            for diagnostic in outcome.diagnostics:
                if not diagnostic.auto_fixable:
                    continue
                try:
                    applied = rule.fix(context, diagnostic)
                except Exception as exc:
                    self._log_exception(f"Fix for {rule.id} failed on {diagnostic.file_path}", exc)
                    continue
                if applied:
                    fixed += 1
                    self.logger.info("Fixed %s in %s", rule.id, _rewrite_path(diagnostic, root.relative_root).file_path)
        return fixed

    @staticmethod
    def _build_context(root: ScanRoot, ignore_rules: Sequence[IgnoreRule]) -> RuleContext:
        return RuleContext(
            root.path,
            root.project,
            is_workspace=root.is_workspace,
            relative_root=root.relative_root,
            ignore_rules=ignore_rules,
        )

    def _log_exception(self, message: str, exc: Exception) -> None:
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.exception("%s: %s", message, exc)
        else:
            self.logger.warning("%s: %s", message, exc)


def diagnose(
    directory: str | Path,
    *,
    category: str | None = None,
    project: str | None = None,
) -> DoctorResult:
    """Run a read-only diagnosis of ``directory`` with the built-in rules."""
    return Doctor().run(directory, DoctorOptions(category=category, project=project))


def _rewrite_path(diagnostic: Diagnostic, relative_root: str) -> Diagnostic:
    if not relative_root:
        return diagnostic
    return replace(diagnostic, file_path=posixpath.normpath(posixpath.join(relative_root, diagnostic.file_path)))


def _as_str(value: object) -> Optional[str]:
    return value if isinstance(value, str) and value else None


__all__ = ["Doctor", "ScanRoot", "diagnose"]
