"""Base class for doctor rules."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import ClassVar, FrozenSet, List, Optional

from ..context import RuleContext
from ..models import Category, Diagnostic, Severity

SOURCE_FILES = re.compile(r"\.(ts|tsx|js|jsx)$")
EXTENDED_SOURCE_FILES = re.compile(r"\.(ts|tsx|js|jsx|mjs|cjs)$")
JSX_FILES = re.compile(r"\.(tsx|jsx)$")
USE_CLIENT_MARKERS = ('"use client"', "'use client'")


class Rule(ABC):
    """Contract for a single static check.

    Subclasses declare their metadata as class attributes and implement
    :meth:`check`. Rules that can repair their own findings override
    :meth:`fix`; everything else about a rule is stateless.
    """

    id: ClassVar[str]
    name: ClassVar[str]
    category: ClassVar[Category]
    severity: ClassVar[Severity]
    description: ClassVar[str]
    help: ClassVar[str]
    applies_to: ClassVar[FrozenSet[str]]
    # Known false-positive/negative tendency of the heuristic, if any.
    bias: ClassVar[str] = ""

    @abstractmethod
    def check(self, context: RuleContext) -> List[Diagnostic]:
        """Return diagnostics for the root bound to ``context``."""

    def fix(self, context: RuleContext, diagnostic: Diagnostic) -> bool:
        """Repair ``diagnostic`` in place, returning True when a file changed."""
        return False

    def can_fix(self) -> bool:
        return type(self).fix is not Rule.fix

    def applies(self, kind: str) -> bool:
        return kind in self.applies_to

    def diagnostic(
        self,
        file_path: str,
        message: str,
        *,
        line: Optional[int] = None,
        auto_fixable: bool = False,
        help: Optional[str] = None,
    ) -> Diagnostic:
        return Diagnostic(
            rule_id=self.id,
            file_path=file_path,
            severity=self.severity,
            message=message,
            help=help or self.help,
            line=line,
            auto_fixable=auto_fixable,
        )


def has_use_client(content: str) -> bool:
    return any(marker in content for marker in USE_CLIENT_MARKERS)


def read_all(context: RuleContext, files: List[str]) -> str:
    """Concatenate the readable contents of ``files``."""
    chunks: List[str] = []
    for path in files:
        content = context.read_file(path)
        if content:
            chunks.append(content)
    return "\n".join(chunks) + ("\n" if chunks else "")


__all__ = [
    "EXTENDED_SOURCE_FILES",
    "JSX_FILES",
    "Rule",
    "SOURCE_FILES",
    "has_use_client",
    "read_all",
]
