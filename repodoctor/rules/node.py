"""General repository hygiene checks for Node.js projects."""

from __future__ import annotations

from typing import List, Tuple

from ..context import RuleContext
from ..models import ALL_KINDS, KIND_FRAMEWORK_APP, KIND_GENERIC, Diagnostic
from .base import EXTENDED_SOURCE_FILES, Rule, read_all

_APPLICATION_KINDS = frozenset({KIND_GENERIC, KIND_FRAMEWORK_APP})

LOCKFILES: Tuple[Tuple[str, str], ...] = (
    ("package-lock.json", "npm"),
    ("yarn.lock", "yarn"),
    ("pnpm-lock.yaml", "pnpm"),
    ("bun.lockb", "bun"),
    ("bun.lock", "bun"),
)
NESTED_MODULE_DIRS = ("src/node_modules", "lib/node_modules", "app/node_modules")
DEFAULT_NODE_ENGINE = ">=18"
MAX_DEPENDENCY_SCAN_FILES = 200

# Packages consumed by tooling or the framework rather than imported from source.
IMPLICIT_DEPENDENCIES = frozenset(
    {
        "typescript",
        "@types/node",
        "@types/react",
        "@types/react-dom",
        "eslint",
        "prettier",
        "tailwindcss",
        "postcss",
        "autoprefixer",
        "next",
        "react",
        "react-dom",
        "turbo",
        "@next/font",
        "encoding",
        "bufferutil",
        "utf-8-validate",
    }
)


class SingleLockFileRule(Rule):
    id = "node/single-lock-file"
    name = "Single Lock File"
    category = "node"
    severity = "error"
    description = "Project should have only one package manager lock file"
    help = "Delete the extra lock files and stick to one package manager"
    applies_to = ALL_KINDS

    def check(self, context: RuleContext) -> List[Diagnostic]:
        # Lock files live at the repository root, never inside a workspace.
        if context.is_workspace:
            return []
        found = [filename for filename, _ in LOCKFILES if context.file_exists(filename)]
        if len(found) > 1:
            return [
                self.diagnostic(
                    found[0],
                    f"Multiple lock files found: {', '.join(found)}",
                    auto_fixable=True,
                    help="Keep only the one matching your package manager",
                )
            ]
        if not found:
            manager = context.project.package_manager
            if manager == "unknown":
                manager = "npm"
            return [
                self.diagnostic(
                    "package.json",
                    "No lock file found, run your package manager's install",
                    help=f"Run `{manager} install` to generate a lock file",
                )
            ]
        return []


class NoNestedNodeModulesRule(Rule):
    id = "node/no-nested-node-modules"
    name = "No Nested node_modules"
    category = "node"
    severity = "warning"
    description = "Nested node_modules directories can cause dependency resolution issues"
    help = "Remove nested node_modules and use workspace hoisting"
    applies_to = ALL_KINDS
    bias = "Only inspects a fixed set of common source folders (false negatives)."

    def check(self, context: RuleContext) -> List[Diagnostic]:
        return [
            self.diagnostic(
                nested,
                f"Nested node_modules at {nested}",
                help="Delete this directory, it was likely created by accident",
            )
            for nested in NESTED_MODULE_DIRS
            if context.file_exists(nested)
        ]


class TsconfigStrictRule(Rule):
    id = "node/tsconfig-strict"
    name = "TypeScript Strict Mode"
    category = "node"
    severity = "warning"
    description = "TypeScript strict mode catches more bugs at compile time"
    help = 'Enable "strict": true in tsconfig.json compilerOptions'
    applies_to = _APPLICATION_KINDS

    def check(self, context: RuleContext) -> List[Diagnostic]:
        if not context.project.uses_static_typing:
            return []
        tsconfig = context.read_json("tsconfig.json")
        if not isinstance(tsconfig, dict):
            return []
        options = tsconfig.get("compilerOptions")
        if isinstance(options, dict) and options.get("strict"):
            return []
        return [self.diagnostic("tsconfig.json", "TypeScript strict mode is disabled", auto_fixable=True)]

    def fix(self, context: RuleContext, diagnostic: Diagnostic) -> bool:
        tsconfig = context.read_json("tsconfig.json")
        if not isinstance(tsconfig, dict):
            return False
        options = tsconfig.get("compilerOptions")
        if not isinstance(options, dict):
            options = {}
            tsconfig["compilerOptions"] = options
        if options.get("strict") is True:
            return False
        options["strict"] = True
        context.write_json("tsconfig.json", tsconfig)
        return True


class EnginesFieldRule(Rule):
    id = "node/engines-field"
    name = "Engines Field"
    category = "node"
    severity = "warning"
    description = "package.json should specify Node.js engine version for consistency"
    help = 'Add "engines": { "node": ">=18" } to package.json'
    applies_to = ALL_KINDS

    def check(self, context: RuleContext) -> List[Diagnostic]:
        manifest = context.read_json("package.json")
        if not isinstance(manifest, dict):
            return []
        engines = manifest.get("engines")
        if isinstance(engines, dict) and engines.get("node"):
            return []
        return [self.diagnostic("package.json", "Missing engines.node field", auto_fixable=True)]

    def fix(self, context: RuleContext, diagnostic: Diagnostic) -> bool:
        manifest = context.read_json("package.json")
        if not isinstance(manifest, dict):
            return False
        engines = manifest.get("engines")
        if not isinstance(engines, dict):
            engines = {}
        if engines.get("node"):
            return False
        manifest["engines"] = {**engines, "node": DEFAULT_NODE_ENGINE}
        context.write_json("package.json", manifest)
        return True


class GitignoreRule(Rule):
    id = "structure/gitignore"
    name = "Complete .gitignore"
    category = "node"
    severity = "warning"
    description = ".gitignore should cover common patterns"
    help = "Add missing entries to .gitignore"
    applies_to = ALL_KINDS
    bias = "Substring match, so a commented-out entry still counts as present (false negatives)."

    def check(self, context: RuleContext) -> List[Diagnostic]:
        if context.is_workspace:
            return []
        content = context.read_file(".gitignore")
        if not content:
            return [self.diagnostic(".gitignore", "No .gitignore file found", auto_fixable=True)]
        return [
            self.diagnostic(".gitignore", f"Missing {label} pattern in .gitignore", auto_fixable=True)
            for pattern, label in self._required(context)
            if pattern not in content
        ]

    def fix(self, context: RuleContext, diagnostic: Diagnostic) -> bool:
        required = self._required(context)
        content = context.read_file(".gitignore")
        if not content:
            context.write_file(".gitignore", "".join(f"{pattern}\n" for pattern, _ in required))
            return True
        missing = [
            pattern
            for pattern, label in required
            if pattern not in content and f"Missing {label} pattern" in diagnostic.message
        ]
        if not missing:
            return False
        separator = "" if content.endswith("\n") else "\n"
        context.write_file(".gitignore", content + separator + "".join(f"{pattern}\n" for pattern in missing))
        return True

    @staticmethod
    def _required(context: RuleContext) -> List[Tuple[str, str]]:
        required = [("node_modules", "node_modules"), (".env", ".env files")]
        if context.project.kind == KIND_FRAMEWORK_APP:
            required.append((".next", ".next build dir"))
        return required


class EnvExampleRule(Rule):
    id = "structure/env-example"
    name = "Environment Example"
    category = "node"
    severity = "warning"
    description = "If .env exists, .env.example should too for team onboarding"
    help = "Create .env.example with placeholder values for all env vars"
    applies_to = _APPLICATION_KINDS

    def check(self, context: RuleContext) -> List[Diagnostic]:
        if not any(context.file_exists(name) for name in (".env", ".env.local")):
            return []
        if context.file_exists(".env.example") or context.file_exists(".env.local.example"):
            return []
        return [
            self.diagnostic(
                ".env.example",
                "Has .env but no .env.example, teammates won't know which vars are needed",
            )
        ]


class UnusedDependenciesRule(Rule):
    id = "node/unused-deps"
    name = "No Unused Dependencies"
    category = "node"
    severity = "warning"
    description = "Dependencies in package.json should be actually imported in code"
    help = "Remove unused dependencies with 'npm uninstall <pkg>'"
    applies_to = _APPLICATION_KINDS
    bias = (
        "Only the first 200 source files are searched and CLI-only packages are never imported "
        "(false positives)."
    )

    def check(self, context: RuleContext) -> List[Diagnostic]:
        manifest = context.read_json("package.json")
        deps = manifest.get("dependencies") if isinstance(manifest, dict) else None
        if not isinstance(deps, dict) or not deps:
            return []

        files = context.find_files(EXTENDED_SOURCE_FILES)[:MAX_DEPENDENCY_SCAN_FILES]
        corpus = read_all(context, files)

        unused: List[str] = []
        for dependency in deps:
            if dependency in IMPLICIT_DEPENDENCIES:
                continue
            base = dependency if dependency.startswith("@") else dependency.split("/")[0]
            needles = (
                f'"{base}"',
                f"'{base}'",
                f'from "{base}',
                f"from '{base}",
                f'require("{base}',
                f"require('{base}",
            )
            if not any(needle in corpus for needle in needles):
                unused.append(dependency)

        if not unused:
            return []
        suffix = "..." if len(unused) > 5 else ""
        return [
            self.diagnostic(
                "package.json",
                f"{len(unused)} potentially unused deps: {', '.join(unused[:5])}{suffix}",
                help=f"Check: {', '.join(unused)}",
            )
        ]


NODE_RULES = (
    SingleLockFileRule,
    NoNestedNodeModulesRule,
    TsconfigStrictRule,
    EnginesFieldRule,
    GitignoreRule,
    EnvExampleRule,
    UnusedDependenciesRule,
)

__all__ = [
    "NODE_RULES",
    "EnginesFieldRule",
    "EnvExampleRule",
    "GitignoreRule",
    "NoNestedNodeModulesRule",
    "SingleLockFileRule",
    "TsconfigStrictRule",
    "UnusedDependenciesRule",
]
