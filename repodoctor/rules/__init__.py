"""Doctor rule implementations and discovery utilities."""

from __future__ import annotations

from importlib import metadata
from typing import Callable, Iterable, List, Sequence, Set, Type

from .base import Rule
from .dead_code import DEAD_CODE_RULES
from .nextjs import NEXTJS_RULES
from .node import NODE_RULES
from .turbo import TURBO_RULES

_ENTRY_POINT_GROUP = "repodoctor.rules"

BUILTIN_RULES: tuple[Type[Rule], ...] = (
    *NEXTJS_RULES,
    *TURBO_RULES,
    *NODE_RULES,
    *DEAD_CODE_RULES,
)


def discover_rules(
    categories: Sequence[str] | None = None,
    disabled: Sequence[str] | None = None,
) -> List[Rule]:
    """Return instantiated rules in registry order, honoring category and id filters."""

    category_set: Set[str] | None = None
    if categories:
        category_set = {name.lower() for name in categories}
    disabled_set = set(disabled or ())

    rules: List[Rule] = []
    seen: Set[str] = set()

    def _add(factory: Callable[[], object], origin: str) -> None:
        instance = factory()
        if not isinstance(instance, Rule):
            raise TypeError(f"Rule factory '{origin}' did not return a Rule instance")
        if instance.id in seen or instance.id in disabled_set:
            return
        if category_set is not None and instance.category not in category_set:
            return
        rules.append(instance)
        seen.add(instance.id)

    for rule_class in BUILTIN_RULES:
        _add(rule_class, rule_class.__name__)

    for entry in _iter_entry_points():
        try:
            loaded = entry.load()
        except Exception as exc:  # pragma: no cover - defensive guard
            raise RuntimeError(f"Failed to load rule entry point '{entry.name}': {exc}") from exc
        _add(lambda obj=loaded: _coerce_rule(obj), entry.name)

    return rules


def _coerce_rule(obj: object) -> Rule:
    if isinstance(obj, Rule):
        return obj
    if isinstance(obj, type) and issubclass(obj, Rule):
        return obj()
    if callable(obj):
        instance = obj()
        if isinstance(instance, Rule):
            return instance
    raise TypeError("Rule entry point must be a Rule subclass or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    try:
        entry_points = metadata.entry_points()
    except Exception:  # pragma: no cover - defensive guard
        return []
    return entry_points.select(group=_ENTRY_POINT_GROUP)


__all__ = [
    "BUILTIN_RULES",
    "Rule",
    "discover_rules",
]
