"""Convention checks for Next.js App Router projects."""

from __future__ import annotations

import posixpath
import re
from typing import List

from ..context import RuleContext
from ..models import KIND_FRAMEWORK_APP, Diagnostic
from .base import JSX_FILES, Rule, has_use_client

_FRAMEWORK_ONLY = frozenset({KIND_FRAMEWORK_APP})

ROOT_LAYOUTS = ("app/layout.tsx", "app/layout.jsx", "src/app/layout.tsx", "src/app/layout.jsx")
PAGE_FILES = re.compile(r"(?:^|/)page\.(tsx|jsx|ts|js)$")
JSX_PAGE_FILES = re.compile(r"(?:^|/)page\.(tsx|jsx)$")
SERVER_FILES = re.compile(r"(?:^|/)(page|layout)\.(tsx|jsx)$")
LAYOUT_FILE = re.compile(r"(?:^|/)layout\.(tsx|jsx)$")
ROUTE_FILES = re.compile(r"(?:^|/)route\.(ts|js|tsx|jsx)$")
HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")

_HOOK_NAMES = ("useState", "useEffect", "useRef", "useReducer", "useCallback", "useMemo", "useContext")
_CLIENT_SIGNALS = [
    (name, re.compile(rf"\b{name}\b"))
    for name in (*_HOOK_NAMES, "onClick", "onChange", "onSubmit", "window", "document")
]
_HOOK_CALL = re.compile(rf"\b({'|'.join(_HOOK_NAMES)})\s*\(")
_IMG_TAG = re.compile(r"<img\s", re.IGNORECASE)
_INTERNAL_ANCHOR = re.compile(r"""<a\s[^>]*href=["'](/[^"']*)""", re.IGNORECASE)


class MissingRootLayoutRule(Rule):
    id = "nextjs/missing-root-layout"
    name = "Root Layout Required"
    category = "nextjs"
    severity = "error"
    description = "Next.js App Router requires a root layout.tsx"
    help = "Create app/layout.tsx with html and body tags wrapping {children}"
    applies_to = _FRAMEWORK_ONLY

    def check(self, context: RuleContext) -> List[Diagnostic]:
        if any(context.file_exists(path) for path in ROOT_LAYOUTS):
            return []
        return [
            self.diagnostic(
                "app/layout.tsx", "No root layout found: App Router requires app/layout.tsx"
            )
        ]


class LayoutHtmlBodyRule(Rule):
    id = "nextjs/layout-html-body"
    name = "Layout Has HTML/Body"
    category = "nextjs"
    severity = "error"
    description = "Root layout must wrap children in <html> and <body> tags"
    help = "Add <html lang='en'><body>{children}</body></html> to root layout"
    applies_to = _FRAMEWORK_ONLY

    def check(self, context: RuleContext) -> List[Diagnostic]:
        results: List[Diagnostic] = []
        for path in ROOT_LAYOUTS:
            content = context.read_file(path)
            if not content:
                continue
            if "<html" not in content:
                results.append(self.diagnostic(path, "Root layout missing <html> tag"))
            if "<body" not in content:
                results.append(self.diagnostic(path, "Root layout missing <body> tag"))
            # Only the first layout found is the effective root layout.
            break
        return results


class PageDefaultExportRule(Rule):
    id = "nextjs/page-default-export"
    name = "Page Default Export"
    category = "nextjs"
    severity = "error"
    description = "Page files must have a default export"
    help = "Add 'export default function PageName()' to your page file"
    applies_to = _FRAMEWORK_ONLY

    def check(self, context: RuleContext) -> List[Diagnostic]:
        results: List[Diagnostic] = []
        for path in context.find_files(PAGE_FILES):
            content = context.read_file(path)
            if content and "export default" not in content:
                results.append(self.diagnostic(path, "Page file missing default export"))
        return results


class ClientDirectiveRule(Rule):
    id = "nextjs/client-directive"
    name = "Client Directive Usage"
    category = "nextjs"
    severity = "warning"
    description = "Files using hooks/browser APIs should have 'use client' directive"
    help = "Add 'use client' at the top of files using useState, useEffect, onClick, etc."
    applies_to = _FRAMEWORK_ONLY
    bias = "Matches identifiers anywhere in the file, including comments and strings (false positives)."

    def check(self, context: RuleContext) -> List[Diagnostic]:
        results: List[Diagnostic] = []
        for path in context.find_files(JSX_FILES):
            # Layouts outside component folders may legitimately be server components.
            if LAYOUT_FILE.search(path) and "components" not in path:
                continue
            content = context.read_file(path)
            if not content or has_use_client(content):
                continue
            trigger = next((name for name, pattern in _CLIENT_SIGNALS if pattern.search(content)), None)
            if trigger is not None:
                results.append(
                    self.diagnostic(
                        path,
                        f'Uses {trigger} but missing "use client" directive',
                        auto_fixable=True,
                    )
                )
        return results

    def fix(self, context: RuleContext, diagnostic: Diagnostic) -> bool:
        content = context.read_file(diagnostic.file_path)
        if content is None or has_use_client(content):
            return False
        context.write_file(diagnostic.file_path, f'"use client";\n\n{content}')
        return True


class ServerComponentHooksRule(Rule):
    id = "nextjs/server-component-hooks"
    name = "No Hooks in Server Components"
    category = "nextjs"
    severity = "error"
    description = "Server components cannot use React hooks"
    help = "Add 'use client' directive or move hooks to a client component"
    applies_to = _FRAMEWORK_ONLY

    def check(self, context: RuleContext) -> List[Diagnostic]:
        results: List[Diagnostic] = []
        for path in context.find_files(SERVER_FILES):
            content = context.read_file(path)
            if not content or has_use_client(content):
                continue
            for number, line in enumerate(content.splitlines(), start=1):
                match = _HOOK_CALL.search(line)
                if match:
                    results.append(
                        self.diagnostic(path, f"Server component uses hook {match.group(1)}()", line=number)
                    )
        return results


class MetadataExportRule(Rule):
    id = "nextjs/metadata-export"
    name = "Metadata Export"
    category = "nextjs"
    severity = "warning"
    description = "Pages/layouts should export metadata or generateMetadata for SEO"
    help = "Add 'export const metadata = { title: ... }' or 'export async function generateMetadata()'"
    applies_to = _FRAMEWORK_ONLY

    _MARKERS = (
        "export const metadata",
        "export async function generateMetadata",
        "export function generateMetadata",
    )

    def check(self, context: RuleContext) -> List[Diagnostic]:
        results: List[Diagnostic] = []
        for path in context.find_files(PAGE_FILES):
            content = context.read_file(path)
            if content and not any(marker in content for marker in self._MARKERS):
                results.append(self.diagnostic(path, "Page missing metadata export for SEO"))
        return results


class ImageComponentRule(Rule):
    id = "nextjs/image-component"
    name = "Use next/image"
    category = "nextjs"
    severity = "warning"
    description = "Use next/image instead of <img> for optimized images"
    help = "Import Image from 'next/image' and replace <img> tags"
    applies_to = _FRAMEWORK_ONLY

    def check(self, context: RuleContext) -> List[Diagnostic]:
        results: List[Diagnostic] = []
        for path in context.find_files(JSX_FILES):
            content = context.read_file(path)
            if not content:
                continue
            for number, line in enumerate(content.splitlines(), start=1):
                if _IMG_TAG.search(line) and "eslint-disable" not in line:
                    results.append(self.diagnostic(path, "Uses <img> instead of next/image", line=number))
        return results


class LinkComponentRule(Rule):
    id = "nextjs/link-component"
    name = "Use next/link"
    category = "nextjs"
    severity = "warning"
    description = "Use next/link for internal navigation instead of <a> tags"
    help = "Import Link from 'next/link' and replace <a href='/...'> with <Link href='/...'>"
    applies_to = _FRAMEWORK_ONLY

    def check(self, context: RuleContext) -> List[Diagnostic]:
        results: List[Diagnostic] = []
        for path in context.find_files(JSX_FILES):
            content = context.read_file(path)
            if not content:
                continue
            for number, line in enumerate(content.splitlines(), start=1):
                match = _INTERNAL_ANCHOR.search(line)
                if match and "eslint-disable" not in line:
                    results.append(
                        self.diagnostic(
                            path,
                            f'Uses <a> for internal link "{match.group(1)}" instead of next/link',
                            line=number,
                        )
                    )
        return results


class RouteHandlerMethodsRule(Rule):
    id = "nextjs/route-handler-methods"
    name = "Route Handler Exports"
    category = "nextjs"
    severity = "error"
    description = "API route handlers must export named HTTP methods (GET, POST, etc.)"
    help = "Export named functions: export async function GET(request) { ... }"
    applies_to = _FRAMEWORK_ONLY

    def check(self, context: RuleContext) -> List[Diagnostic]:
        results: List[Diagnostic] = []
        for path in context.find_files(ROUTE_FILES):
            content = context.read_file(path)
            if not content:
                continue
            exported = any(
                f"export async function {method}" in content
                or f"export function {method}" in content
                or f"export const {method}" in content
                for method in HTTP_METHODS
            )
            if not exported:
                results.append(
                    self.diagnostic(path, "Route handler doesn't export any HTTP methods (GET/POST/etc.)")
                )
        return results


class LoadingStatesRule(Rule):
    id = "nextjs/loading-states"
    name = "Loading States"
    category = "nextjs"
    severity = "warning"
    description = "Route groups with data fetching should have loading.tsx for better UX"
    help = "Create loading.tsx alongside page.tsx for Suspense-based loading states"
    applies_to = _FRAMEWORK_ONLY

    def check(self, context: RuleContext) -> List[Diagnostic]:
        results: List[Diagnostic] = []
        for path in context.find_files(JSX_PAGE_FILES):
            content = context.read_file(path)
            if not content:
                continue
            fetches_data = "async function" in content and ("fetch(" in content or "await " in content)
            if not fetches_data:
                continue
            directory = posixpath.dirname(path)
            has_loading = any(
                context.file_exists(posixpath.join(directory, name)) for name in ("loading.tsx", "loading.jsx")
            )
            if not has_loading:
                results.append(self.diagnostic(path, "Page with async data has no loading.tsx for Suspense"))
        return results


NEXTJS_RULES = (
    MissingRootLayoutRule,
    LayoutHtmlBodyRule,
    PageDefaultExportRule,
    ClientDirectiveRule,
    ServerComponentHooksRule,
    MetadataExportRule,
    ImageComponentRule,
    LinkComponentRule,
    RouteHandlerMethodsRule,
    LoadingStatesRule,
)

__all__ = [
    "NEXTJS_RULES",
    "ClientDirectiveRule",
    "ImageComponentRule",
    "LayoutHtmlBodyRule",
    "LinkComponentRule",
    "LoadingStatesRule",
    "MetadataExportRule",
    "MissingRootLayoutRule",
    "PageDefaultExportRule",
    "RouteHandlerMethodsRule",
    "ServerComponentHooksRule",
]
