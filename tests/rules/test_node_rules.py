"""Tests for the Node.js hygiene rule group."""

from __future__ import annotations

from repodoctor.rules.node import (
    EnginesFieldRule,
    EnvExampleRule,
    GitignoreRule,
    NoNestedNodeModulesRule,
    SingleLockFileRule,
    TsconfigStrictRule,
    UnusedDependenciesRule,
)
from tests._fixtures.repo_builder import RepoBuilder


def test_multiple_lock_files_yield_single_fixable_error(repo_builder: RepoBuilder) -> None:
    repo_builder.write_json("package.json", {"name": "app"})
    repo_builder.write({"package-lock.json": "{}", "pnpm-lock.yaml": "lockfileVersion: 9\n"})

    [diagnostic] = SingleLockFileRule().check(repo_builder.context())

    assert diagnostic.severity == "error"
    assert diagnostic.auto_fixable is True
    assert diagnostic.file_path == "package-lock.json"
    assert diagnostic.message == "Multiple lock files found: package-lock.json, pnpm-lock.yaml"


def test_missing_lock_file_suggests_install(repo_builder: RepoBuilder) -> None:
    repo_builder.write_json("package.json", {"name": "app"})

    [diagnostic] = SingleLockFileRule().check(repo_builder.context())

    assert diagnostic.file_path == "package.json"
    assert diagnostic.help == "Run `npm install` to generate a lock file"


def test_lock_file_rule_skips_workspaces(repo_builder: RepoBuilder) -> None:
    repo_builder.write_json("package.json", {"name": "app"})

    assert SingleLockFileRule().check(repo_builder.context(is_workspace=True)) == []


def test_nested_node_modules(repo_builder: RepoBuilder) -> None:
    repo_builder.mkdir("src/node_modules/pkg")

    diagnostics = NoNestedNodeModulesRule().check(repo_builder.context())

    assert [d.file_path for d in diagnostics] == ["src/node_modules"]
    assert diagnostics[0].auto_fixable is False


def test_tsconfig_strict_check_and_fix(repo_builder: RepoBuilder) -> None:
    repo_builder.write_json("package.json", {"name": "app"})
    repo_builder.write_json("tsconfig.json", {"compilerOptions": {"target": "es2022"}})
    rule = TsconfigStrictRule()
    context = repo_builder.context()

    [diagnostic] = rule.check(context)
    assert diagnostic.auto_fixable is True

    assert rule.fix(context, diagnostic) is True
    assert repo_builder.read_json("tsconfig.json") == {"compilerOptions": {"target": "es2022", "strict": True}}
    assert rule.fix(context, diagnostic) is False
    assert rule.check(context) == []


def test_tsconfig_strict_ignores_unreadable_config(repo_builder: RepoBuilder) -> None:
    # tsconfig files may carry comments, which plain JSON cannot read.
    repo_builder.write({"tsconfig.json": "{ // comment\n}"})

    assert TsconfigStrictRule().check(repo_builder.context()) == []


def test_engines_field_fix_preserves_other_engines(repo_builder: RepoBuilder) -> None:
    repo_builder.write_json("package.json", {"name": "app", "engines": {"pnpm": ">=8"}})
    rule = EnginesFieldRule()
    context = repo_builder.context()

    [diagnostic] = rule.check(context)
    assert rule.fix(context, diagnostic) is True

    assert repo_builder.read_json("package.json")["engines"] == {"pnpm": ">=8", "node": ">=18"}
    assert rule.check(context) == []


def test_gitignore_missing_file_is_created(repo_builder: RepoBuilder) -> None:
    repo_builder.write_json("package.json", {"name": "web", "dependencies": {"next": "14.0.0"}})
    rule = GitignoreRule()
    context = repo_builder.context()

    [diagnostic] = rule.check(context)
    assert diagnostic.message == "No .gitignore file found"

    assert rule.fix(context, diagnostic) is True
    assert repo_builder.read(".gitignore") == "node_modules\n.env\n.next\n"
    assert rule.check(context) == []


def test_gitignore_appends_only_missing_pattern(repo_builder: RepoBuilder) -> None:
    repo_builder.write_json("package.json", {"name": "app"})
    repo_builder.write({".gitignore": "node_modules"})
    rule = GitignoreRule()
    context = repo_builder.context()

    [diagnostic] = rule.check(context)
    assert diagnostic.message == "Missing .env files pattern in .gitignore"

    assert rule.fix(context, diagnostic) is True
    assert repo_builder.read(".gitignore") == "node_modules\n.env\n"
    assert rule.fix(context, diagnostic) is False


def test_env_example(repo_builder: RepoBuilder) -> None:
    repo_builder.write({".env.local": "SECRET=1\n"})
    rule = EnvExampleRule()

    assert [d.file_path for d in rule.check(repo_builder.context())] == [".env.example"]

    repo_builder.write({".env.example": "SECRET=\n"})
    assert rule.check(repo_builder.context()) == []


def test_unused_dependencies(repo_builder: RepoBuilder) -> None:
    repo_builder.write_json(
        "package.json",
        {
            "name": "app",
            "dependencies": {
                "react": "18",
                "zod": "3",
                "lodash": "4",
                "@scope/kit": "1",
                "left-pad": "1",
            },
        },
    )
    repo_builder.write(
        {
            "src/index.ts": "import { z } from 'zod';\nconst kit = require(\"@scope/kit\");\n",
            "src/util.mjs": "import get from 'lodash/get';\n",
        }
    )

    [diagnostic] = UnusedDependenciesRule().check(repo_builder.context())

    assert diagnostic.message == "1 potentially unused deps: left-pad"
    assert diagnostic.help == "Check: left-pad"
