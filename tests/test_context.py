"""Tests for the rule context filesystem helpers."""

from __future__ import annotations

import os

import pytest

from repodoctor.context import build_ignore_rules
from repodoctor.rules.base import SOURCE_FILES
from tests._fixtures.repo_builder import RepoBuilder


def test_find_files_is_sorted_and_skips_ignored_dirs(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "package.json": "{}",
            "src/b.ts": "",
            "src/a.tsx": "",
            "src/readme.md": "",
            "node_modules/lib/index.js": "",
            ".next/server/page.js": "",
            ".storybook/main.ts": "",
            "dist/out.js": "",
        }
    )

    files = repo_builder.context().find_files(SOURCE_FILES)

    assert files == ["src/a.tsx", "src/b.ts"]


def test_find_files_respects_max_depth(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"a/b/c/deep.ts": "", "top.ts": ""})

    context = repo_builder.context()

    assert context.find_files(SOURCE_FILES, max_depth=1) == ["top.ts"]
    assert context.find_files(SOURCE_FILES) == ["a/b/c/deep.ts", "top.ts"]


def test_find_files_applies_exclude_rules_relative_to_project(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"generated/api.ts": "", "src/main.ts": "", "src/legacy.ts": ""})

    context = repo_builder.context(ignore_rules=build_ignore_rules(["generated/", "legacy.ts", "# comment"]))

    assert context.find_files(SOURCE_FILES) == ["src/main.ts"]


def test_exclude_rules_see_workspace_prefix(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"src/main.ts": "", "src/gen/types.ts": ""})

    context = repo_builder.context(
        relative_root="apps/web",
        ignore_rules=build_ignore_rules(["apps/web/src/gen"]),
    )

    assert context.find_files(SOURCE_FILES) == ["src/main.ts"]


def test_read_helpers_never_raise(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"broken.json": "{", "good.json": '{"a": 1}'})
    context = repo_builder.context()

    assert context.read_file("missing.txt") is None
    assert context.read_json("broken.json") is None
    assert context.read_json("good.json") == {"a": 1}
    assert context.file_exists("good.json") is True
    assert context.file_exists("../outside.json") is False
    assert context.read_file("../outside.json") is None


def test_read_helpers_survive_symlink_loops(repo_builder: RepoBuilder) -> None:
    loop = repo_builder.path() / "loop.ts"
    try:
        os.symlink(loop, loop)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks unavailable")
    context = repo_builder.context()

    assert context.read_file("loop.ts") is None
    assert context.read_json("loop.ts") is None
    assert context.file_exists("loop.ts") is False


def test_write_json_formats_with_trailing_newline(repo_builder: RepoBuilder) -> None:
    context = repo_builder.context()

    context.write_json("nested/data.json", {"b": 1})

    assert repo_builder.read("nested/data.json") == '{\n  "b": 1\n}\n'


def test_write_outside_root_is_rejected(repo_builder: RepoBuilder) -> None:
    context = repo_builder.context()

    with pytest.raises(ValueError):
        context.write_file("../escape.txt", "nope")
