"""Tests for the Next.js rule group."""

from __future__ import annotations

import pytest

from repodoctor.rules.nextjs import (
    ClientDirectiveRule,
    ImageComponentRule,
    LayoutHtmlBodyRule,
    LinkComponentRule,
    LoadingStatesRule,
    MetadataExportRule,
    MissingRootLayoutRule,
    PageDefaultExportRule,
    RouteHandlerMethodsRule,
    ServerComponentHooksRule,
)
from tests._fixtures.repo_builder import RepoBuilder


@pytest.fixture
def app(repo_builder: RepoBuilder) -> RepoBuilder:
    repo_builder.write_json("package.json", {"name": "web", "dependencies": {"next": "14.2.0"}})
    return repo_builder


def test_missing_root_layout(app: RepoBuilder) -> None:
    diagnostics = MissingRootLayoutRule().check(app.context())

    assert [d.file_path for d in diagnostics] == ["app/layout.tsx"]
    assert diagnostics[0].severity == "error"


def test_root_layout_under_src_is_accepted(app: RepoBuilder) -> None:
    app.write({"src/app/layout.jsx": "export default function L() {}"})

    assert MissingRootLayoutRule().check(app.context()) == []


def test_layout_requires_html_and_body(app: RepoBuilder) -> None:
    app.write({"app/layout.tsx": "export default function L({ children }) { return <main>{children}</main> }"})

    messages = [d.message for d in LayoutHtmlBodyRule().check(app.context())]

    assert messages == ["Root layout missing <html> tag", "Root layout missing <body> tag"]


def test_page_without_default_export(app: RepoBuilder) -> None:
    app.write(
        {
            "app/page.tsx": "export default function Home() { return null }",
            "app/about/page.tsx": "export function About() { return null }",
        }
    )

    diagnostics = PageDefaultExportRule().check(app.context())

    assert [d.file_path for d in diagnostics] == ["app/about/page.tsx"]


def test_client_directive_flags_hooks_and_skips_server_layouts(app: RepoBuilder) -> None:
    app.write(
        {
            "app/layout.tsx": "const ok = useState;",
            "components/Counter.tsx": "import { useState } from 'react';\nexport function Counter() { useState(0) }",
            "components/Client.tsx": '"use client";\nexport function C() { useEffect(() => {}) }',
            "components/Plain.tsx": "export function Plain() { return <p /> }",
        }
    )

    diagnostics = ClientDirectiveRule().check(app.context())

    assert [(d.file_path, d.message) for d in diagnostics] == [
        ("components/Counter.tsx", 'Uses useState but missing "use client" directive'),
    ]
    assert diagnostics[0].auto_fixable is True


def test_client_directive_fix_is_idempotent(app: RepoBuilder) -> None:
    app.write({"components/Button.tsx": "export function Button() { return <b onClick={go} /> }\n"})
    rule = ClientDirectiveRule()
    context = app.context()
    [diagnostic] = rule.check(context)

    assert rule.fix(context, diagnostic) is True
    assert app.read("components/Button.tsx").startswith('"use client";\n\nexport function Button()')
    assert rule.fix(context, diagnostic) is False
    assert rule.check(context) == []


def test_server_component_hooks_reports_line(app: RepoBuilder) -> None:
    app.write(
        {
            "app/page.tsx": "import x from 'y';\n\nexport default function P() {\n  const [a] = useState(1);\n}\n",
        }
    )

    [diagnostic] = ServerComponentHooksRule().check(app.context())

    assert diagnostic.line == 4
    assert diagnostic.message == "Server component uses hook useState()"


def test_metadata_export(app: RepoBuilder) -> None:
    app.write(
        {
            "app/page.tsx": "export const metadata = { title: 'x' };\nexport default function P() {}",
            "app/blog/page.tsx": "export default function Blog() {}",
        }
    )

    assert [d.file_path for d in MetadataExportRule().check(app.context())] == ["app/blog/page.tsx"]


def test_image_component_and_eslint_escape(app: RepoBuilder) -> None:
    app.write(
        {
            "components/Hero.tsx": (
                "export function Hero() {\n"
                "  return <div>\n"
                '    <img src="/a.png" />\n'
                '    <img src="/b.png" /> {/* eslint-disable-line */}\n'
                "  </div>\n"
                "}\n"
            )
        }
    )

    diagnostics = ImageComponentRule().check(app.context())

    assert [(d.file_path, d.line) for d in diagnostics] == [("components/Hero.tsx", 3)]


def test_link_component_flags_internal_anchors_only(app: RepoBuilder) -> None:
    app.write(
        {
            "components/Nav.tsx": (
                '<a href="/about">About</a>\n'
                '<a href="https://example.com">Out</a>\n'
            )
        }
    )

    [diagnostic] = LinkComponentRule().check(app.context())

    assert diagnostic.line == 1
    assert '"/about"' in diagnostic.message


def test_route_handler_methods(app: RepoBuilder) -> None:
    app.write(
        {
            "app/api/ok/route.ts": "export async function GET() { return Response.json({}) }",
            "app/api/bad/route.ts": "export default function handler() {}",
        }
    )

    diagnostics = RouteHandlerMethodsRule().check(app.context())

    assert [d.file_path for d in diagnostics] == ["app/api/bad/route.ts"]


def test_loading_states(app: RepoBuilder) -> None:
    async_page = "export default async function P() { const r = await fetch('/x'); }"
    app.write(
        {
            "app/feed/page.tsx": async_page,
            "app/feed/loading.tsx": "export default function L() {}",
            "app/posts/page.tsx": async_page,
            "app/static/page.tsx": "export default function S() {}",
        }
    )

    diagnostics = LoadingStatesRule().check(app.context())

    assert [d.file_path for d in diagnostics] == ["app/posts/page.tsx"]


def test_nextjs_rules_only_apply_to_framework_apps() -> None:
    assert MissingRootLayoutRule().applies("framework-app") is True
    assert MissingRootLayoutRule().applies("generic") is False
    assert MissingRootLayoutRule().applies("monorepo") is False
