# greybox/selectors/locator.py
from __future__ import annotations

"""Locator resolution
---------------------
Turns a locator description into one backend selector.

Two description shapes are accepted:

- "#login"         → by.id("login")
- "~nav-back"      → by.label("nav-back")
- "Sign in"        → by.text(...) or by.type(...), depending on the mode
- {"android": ..., "ios": ...}           → branch for the live platform
- {"id"|"label"|"text"|"type"|"traits"}  → first present key, in that order
- anything else    → returned unchanged (already a backend selector)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, ClassVar, Literal, Mapping, Optional, Union

from greybox.core.backend import Platform, Selector, SelectorFactory
from greybox.selectors.spec import STRATEGIES


class LocatorMode(str, Enum):
    """How a sigil-less string is read."""

    text = "text"
    type = "type"


@dataclass(frozen=True)
class RawLocator:
    value: str
    kind: ClassVar[Literal["raw"]] = "raw"


@dataclass(frozen=True)
class StructuredLocator:
    android: Optional["LocatorDescription"] = None
    ios: Optional["LocatorDescription"] = None
    id: Optional[Any] = None
    label: Optional[Any] = None
    text: Optional[Any] = None
    type: Optional[Any] = None
    traits: Optional[Any] = None
    # caller's original value, handed back when no key applies
    source: Any = None
    kind: ClassVar[Literal["structured"]] = "structured"

    @property
    def has_platform_branch(self) -> bool:
        return self.android is not None or self.ios is not None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "StructuredLocator":
        def branch(key: str) -> Optional[LocatorDescription]:
            value = data.get(key)
            return as_description(value) if _present(value) else None

        def plain(key: str) -> Optional[Any]:
            value = data.get(key)
            return value if _present(value) else None

        return cls(
            android=branch("android"),
            ios=branch("ios"),
            id=plain("id"),
            label=plain("label"),
            text=plain("text"),
            type=plain("type"),
            traits=plain("traits"),
            source=data,
        )


LocatorDescription = Union[RawLocator, StructuredLocator]
LocatorInput = Union[str, Mapping[str, Any], RawLocator, StructuredLocator, Any]


def _present(value: Any) -> bool:
    # empty collections still count; only None, False, 0 and "" are unset
    if value is None:
        return False
    if isinstance(value, (str, int, float)):
        return bool(value)
    return True


def as_description(value: LocatorInput) -> LocatorDescription:
    """Normalize caller input into one of the two description variants."""
    if isinstance(value, (RawLocator, StructuredLocator)):
        return value
    if isinstance(value, str):
        return RawLocator(value)
    if isinstance(value, Mapping):
        return StructuredLocator.from_mapping(value)
    return StructuredLocator(source=value)


def compose(context_selector: Selector, selector: Any) -> Selector:
    """`selector` scoped to elements inside `context_selector`."""
    return context_selector.with_descendant(selector)


class Resolver:
    """
    Pure resolver over a backend `by` facility.

    `platform` is called each time a description carries an android/ios
    branch, so a device switch between calls is always seen.
    """

    def __init__(self, by: SelectorFactory, platform: Callable[[], Platform]) -> None:
        self.by = by
        self._platform = platform

    def resolve(self, locator: LocatorInput, mode: LocatorMode | str = LocatorMode.type) -> Any:
        desc = as_description(locator)
        mode = LocatorMode.text if mode == LocatorMode.text else LocatorMode.type
        if desc.kind == "raw":
            return self._resolve_raw(desc, mode)
        return self._resolve_structured(desc, mode)

    def resolve_within(
        self,
        locator: LocatorInput,
        context: Optional[LocatorInput] = None,
        mode: LocatorMode | str = LocatorMode.type,
    ) -> Any:
        """Resolve `locator`, then scope it inside `context` if one is given."""
        selector = self.resolve(locator, mode)
        if context is None:
            return selector
        # the context is always read with the default mode
        return compose(self.resolve(context), selector)

    def _resolve_raw(self, desc: RawLocator, mode: LocatorMode) -> Any:
        value = desc.value
        if value.startswith("#"):
            return self.by.id(value[1:])
        if value.startswith("~"):
            return self.by.label(value[1:])
        if mode == LocatorMode.text:
            return self.by.text(value)
        return self.by.type(value)

    def _resolve_structured(self, desc: StructuredLocator, mode: LocatorMode) -> Any:
        if desc.has_platform_branch:
            platform = self._platform()
            if desc.android is not None and platform == Platform.ANDROID:
                return self.resolve(desc.android, mode)
            if desc.ios is not None and platform == Platform.IOS:
                return self.resolve(desc.ios, mode)

        for strategy in STRATEGIES:
            value = getattr(desc, strategy)
            if value is not None:
                return getattr(self.by, strategy)(value)

        return desc if desc.source is None else desc.source
