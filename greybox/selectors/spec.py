# greybox/selectors/spec.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


STRATEGIES = ("id", "label", "text", "type", "traits")


@dataclass(frozen=True)
class SelectorSpec:
    """
    Plain-data selector: what a backend would be asked to match.

    `descendant` holds the inner selector when this one is used as a context,
    i.e. `ctx.with_descendant(x)` reads as "x inside ctx".
    """

    strategy: str
    value: Any
    descendant: Optional["SelectorSpec"] = None

    def with_descendant(self, other: "SelectorSpec") -> "SelectorSpec":
        if self.descendant is None:
            return SelectorSpec(self.strategy, self.value, other)
        return SelectorSpec(self.strategy, self.value, self.descendant.with_descendant(other))

    def describe(self) -> str:
        base = f"by.{self.strategy}({self.value!r})"
        if self.descendant is not None:
            return f"{base}.with_descendant({self.descendant.describe()})"
        return base

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"strategy": self.strategy, "value": self.value}
        if self.descendant is not None:
            d["descendant"] = self.descendant.to_dict()
        return d

    def __str__(self) -> str:
        return self.describe()


class SpecSelectors:
    """`by` facility producing SelectorSpec values."""

    def id(self, value: str) -> SelectorSpec:
        return SelectorSpec("id", value)

    def label(self, value: str) -> SelectorSpec:
        return SelectorSpec("label", value)

    def text(self, value: str) -> SelectorSpec:
        return SelectorSpec("text", value)

    def type(self, value: str) -> SelectorSpec:
        return SelectorSpec("type", value)

    def traits(self, value: Any) -> SelectorSpec:
        if isinstance(value, list):
            value = tuple(value)
        return SelectorSpec("traits", value)
