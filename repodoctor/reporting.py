"""Render doctor results for terminals and machines."""

from __future__ import annotations

import json
from typing import Dict, Iterable, List, Sequence

from .models import CATEGORIES, KIND_FRAMEWORK_APP, KIND_MONOREPO, DoctorResult, ProjectInfo
from .rules import Rule

CATEGORY_TITLES: Dict[str, str] = {
    "nextjs": "Next.js",
    "turbo": "Turborepo",
    "node": "Node.js / Structure",
    "dead": "Dead Code",
}
RULE_ID_WIDTH = 35
RULE_WIDTH = 50


def describe_project(project: ProjectInfo) -> str:
    if project.kind == KIND_MONOREPO:
        return "Turborepo monorepo"
    if project.kind == KIND_FRAMEWORK_APP:
        return f"Next.js {project.framework_version or ''}".strip()
    return "Node.js"


def render_text(result: DoctorResult, *, verbose: bool = False, dry_run: bool = False) -> str:
    """Human-readable report grouped by rule category."""
    project = result.project
    lines: List[str] = [
        "repodoctor",
        "",
        f"Project:    {project.name}",
        f"Type:       {describe_project(project)}",
    ]
    if project.is_monorepo and project.workspaces is not None:
        lines.append(f"Workspaces: {len(project.workspaces)} detected")
    lines.append("")

    for category in CATEGORIES:
        results = [rule_result for rule_result in result.rule_results if rule_result.category == category]
        if not results:
            continue
        lines.append(CATEGORY_TITLES[category])
        lines.append("-" * RULE_WIDTH)
        for rule_result in results:
            if rule_result.passed:
                lines.append(f"  ok   {rule_result.rule_id.ljust(RULE_ID_WIDTH)} pass")
                continue
            for diagnostic in rule_result.diagnostics:
                marker = "FAIL" if diagnostic.severity == "error" else "warn"
                lines.append(f"  {marker} {diagnostic.rule_id.ljust(RULE_ID_WIDTH)} {diagnostic.message}")
                if verbose:
                    location = diagnostic.file_path
                    if diagnostic.line:
                        location = f"{location}:{diagnostic.line}"
                    lines.append(f"       -> {location}")
                    if diagnostic.help:
                        lines.append(f"       hint: {diagnostic.help}")
        lines.append("")

    errors = sum(1 for diagnostic in result.diagnostics if diagnostic.severity == "error")
    warnings = sum(1 for diagnostic in result.diagnostics if diagnostic.severity == "warning")
    passed = sum(1 for rule_result in result.rule_results if rule_result.passed)
    lines.append(f"Score: {result.score}/100 ({result.grade})")
    lines.append(f"Errors: {errors} | Warnings: {warnings} | Passed: {passed}/{len(result.rule_results)}")
    lines.append(f"Completed in {result.duration}ms")

    fixable = sum(1 for diagnostic in result.diagnostics if diagnostic.auto_fixable)
    if result.fixed_count is not None:
        lines.append("")
        if dry_run:
            lines.append(f"Dry-run: {fixable} issues would be fixed, no files were changed")
        else:
            lines.append(f"Fixed {result.fixed_count} issues")
    elif fixable:
        lines.append("")
        lines.append(f"Run `repodoctor check --fix` to auto-fix {fixable} issues")
    return "\n".join(lines) + "\n"


def render_json(result: DoctorResult) -> str:
    return json.dumps(result.to_dict(), indent=2) + "\n"


def render_score(result: DoctorResult, *, as_json: bool = False) -> str:
    if as_json:
        return json.dumps({"score": result.score, "grade": result.grade}) + "\n"
    return f"{result.score}\n"


def render_rules(rules: Iterable[Rule], *, as_json: bool = False) -> str:
    """List rule metadata, one line per rule or as a JSON array."""
    ordered: Sequence[Rule] = list(rules)
    if as_json:
        payload = [
            {
                "id": rule.id,
                "name": rule.name,
                "category": rule.category,
                "severity": rule.severity,
                "description": rule.description,
                "applies_to": sorted(rule.applies_to),
                "fixable": rule.can_fix(),
                "bias": rule.bias,
            }
            for rule in ordered
        ]
        return json.dumps(payload, indent=2) + "\n"

    lines: List[str] = []
    for rule in ordered:
        flags = rule.severity + (", fixable" if rule.can_fix() else "")
        lines.append(f"{rule.id.ljust(RULE_ID_WIDTH)} [{flags}] {rule.description}")
    return "\n".join(lines) + "\n" if lines else ""


__all__ = ["describe_project", "render_json", "render_rules", "render_score", "render_text"]
