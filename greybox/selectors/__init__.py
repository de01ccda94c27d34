"""
Selectors package
-----------------
Locator descriptions, the resolver that turns them into backend selectors,
and a plain-data selector model for inspection.
"""

from .locator import (
    LocatorMode,
    RawLocator,
    StructuredLocator,
    Resolver,
    as_description,
    compose,
)
from .spec import SelectorSpec, SpecSelectors

__all__ = [
    "LocatorMode",
    "RawLocator",
    "StructuredLocator",
    "Resolver",
    "as_description",
    "compose",
    "SelectorSpec",
    "SpecSelectors",
]
