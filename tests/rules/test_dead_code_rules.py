"""Tests for the dead-code heuristics."""

from __future__ import annotations

from repodoctor.rules.dead_code import (
    OrphanFilesRule,
    UnusedComponentsRule,
    UnusedExportsRule,
    is_entry_point,
    resolve_candidates,
)
from tests._fixtures.repo_builder import RepoBuilder


def test_resolve_candidates_covers_extensions_and_index() -> None:
    candidates = resolve_candidates("src/pages/home.ts", "../lib/api")

    assert "src/lib/api.ts" in candidates
    assert "src/lib/api/index.tsx" in candidates
    assert "src/lib/api" in candidates


def test_resolve_candidates_strips_explicit_extension() -> None:
    assert "src/lib/api.ts" in resolve_candidates("src/main.ts", "./lib/api.js")


def test_entry_point_patterns() -> None:
    assert is_entry_point("app/dashboard/page.tsx")
    assert is_entry_point("middleware.ts")
    assert is_entry_point("next.config.mjs")
    assert is_entry_point("src/__tests__/thing.ts")
    assert is_entry_point("types/global.d.ts")
    assert not is_entry_point("src/lib/helpers.ts")


def _project_with_files(repo_builder: RepoBuilder, count: int) -> None:
    repo_builder.write_json("package.json", {"name": "app"})
    imports = "".join(f"import {{ f{i} }} from './lib/f{i}';\n" for i in range(count))
    repo_builder.write({"src/index.ts": imports})
    for i in range(count):
        repo_builder.write({f"src/lib/f{i}.ts": f"export const f{i} = {i};\n"})


def test_orphan_file_is_reported(repo_builder: RepoBuilder) -> None:
    _project_with_files(repo_builder, 5)
    repo_builder.write({"src/lib/stale.ts": "export const stale = 1;\n"})

    diagnostics = OrphanFilesRule().check(repo_builder.context())

    assert [(d.file_path, d.message) for d in diagnostics] == [
        ("src/lib/stale.ts", "File appears unused, not imported anywhere"),
    ]


def test_entry_points_are_never_orphans(repo_builder: RepoBuilder) -> None:
    _project_with_files(repo_builder, 5)
    repo_builder.write({"app/settings/page.tsx": "export default function Settings() {}\n"})

    assert OrphanFilesRule().check(repo_builder.context()) == []


def test_orphans_suppressed_when_graph_looks_incomplete(repo_builder: RepoBuilder) -> None:
    repo_builder.write_json("package.json", {"name": "app"})
    repo_builder.write({"src/a.ts": "import x from '@/b';\n", "src/b.ts": "", "src/index.ts": ""})

    assert OrphanFilesRule().check(repo_builder.context()) == []


def test_unused_export_reported_with_line(repo_builder: RepoBuilder) -> None:
    repo_builder.write_json("package.json", {"name": "app"})
    repo_builder.write(
        {
            "src/math.ts": "export function add(a, b) {\n  return a + b;\n}\n\nexport const foo = 1;\n",
            "src/main.ts": "import { add } from './math';\nadd(1, 2);\n",
        }
    )

    diagnostics = UnusedExportsRule().check(repo_builder.context())

    assert [(d.file_path, d.line, d.message) for d in diagnostics] == [
        ("src/math.ts", 5, 'Export "foo" appears unused'),
    ]


def test_unused_exports_skip_libraries_and_barrels(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"src/index.ts": "export const lonely = 1;\n"})
    repo_builder.write_json("package.json", {"name": "app"})
    assert UnusedExportsRule().check(repo_builder.context()) == []

    repo_builder.write({"src/other.ts": "export const alone = 1;\n"})
    repo_builder.write_json("package.json", {"name": "lib", "main": "dist/index.js"})
    assert UnusedExportsRule().check(repo_builder.context()) == []


def test_unused_components(repo_builder: RepoBuilder) -> None:
    repo_builder.write_json("package.json", {"name": "web", "dependencies": {"next": "14.0.0"}})
    repo_builder.write(
        {
            "app/page.tsx": "import { Header } from '../components/Header';\nexport default () => <Header />;\n",
            "components/Header.tsx": "export function Header() { return <h1 /> }\n",
            "components/Sidebar.tsx": "export function Sidebar() { return <nav /> }\n",
        }
    )

    diagnostics = UnusedComponentsRule().check(repo_builder.context())

    assert [(d.file_path, d.message) for d in diagnostics] == [
        ("components/Sidebar.tsx", 'Component "Sidebar" appears unused'),
    ]
