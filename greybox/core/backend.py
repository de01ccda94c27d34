from __future__ import annotations

"""Backend contract
-------------------
Protocols for the grey-box automation backend the helper drives: selector
constructors, element actions, expectations, waits, device control and the
session hooks. Concrete backends live outside this package and are loaded
from a 'module:factory' path.
"""

import importlib
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping, Optional, Protocol, runtime_checkable

from greybox.utils.config import HelperOptions
from greybox.utils.logger import get_logger

log = get_logger(__name__)


class Platform(str, Enum):
    """Mobile platforms a device connection can report."""

    IOS = "ios"
    ANDROID = "android"


class BackendNotConfigured(RuntimeError):
    pass


class BackendLoadError(ImportError):
    pass


# ---------- Selectors ----------

@runtime_checkable
class Selector(Protocol):
    """Backend-native selector. Opaque apart from descendant scoping."""

    def with_descendant(self, other: Any) -> "Selector": ...


class SelectorFactory(Protocol):
    """The `by` facility: one constructor per addressing strategy."""

    def id(self, value: str) -> Any: ...

    def label(self, value: str) -> Any: ...

    def text(self, value: str) -> Any: ...

    def type(self, value: str) -> Any: ...

    def traits(self, value: Any) -> Any: ...


# ---------- Elements, expectations, waits ----------

class Element(Protocol):
    def tap(self) -> Awaitable[Any]: ...

    def multi_tap(self, times: int) -> Awaitable[Any]: ...

    def long_press(self, duration_ms: int) -> Awaitable[Any]: ...

    def tap_at_point(self, point: Mapping[str, float]) -> Awaitable[Any]: ...

    def type_text(self, text: str) -> Awaitable[Any]: ...

    def replace_text(self, text: str) -> Awaitable[Any]: ...

    def clear_text(self) -> Awaitable[Any]: ...

    def scroll_to(self, edge: str) -> Awaitable[Any]: ...

    def swipe(self, direction: str, speed: str) -> Awaitable[Any]: ...


class Expectation(Protocol):
    """Assertions evaluated eagerly by the backend."""

    def to_exist(self) -> Any: ...

    def to_not_exist(self) -> Any: ...

    def to_be_visible(self) -> Any: ...

    def to_be_not_visible(self) -> Any: ...

    def to_have_text(self, text: str) -> Any: ...


class TimedWait(Protocol):
    def with_timeout(self, ms: int) -> Awaitable[Any]: ...


class WaitExpectation(Protocol):
    def to_exist(self) -> TimedWait: ...

    def to_be_visible(self) -> TimedWait: ...

    def to_be_not_visible(self) -> TimedWait: ...


# ---------- Device and backend ----------

class Device(Protocol):
    def get_platform(self) -> str: ...

    def launch_app(self, new_instance: bool = False) -> Awaitable[Any]: ...

    def install_app(self) -> Awaitable[Any]: ...

    def reload_react_native(self) -> Awaitable[Any]: ...

    def shake(self) -> Awaitable[Any]: ...

    def press_back(self) -> Awaitable[Any]: ...

    def set_orientation(self, orientation: str) -> Awaitable[Any]: ...


class Backend(Protocol):
    by: SelectorFactory
    device: Device

    def element(self, selector: Any) -> Element: ...

    def expect(self, element: Element) -> Expectation: ...

    def wait_for(self, element: Element) -> WaitExpectation: ...

    def init(self, options: HelperOptions, *, reuse: bool, launch_app: bool) -> Awaitable[Any]: ...

    def cleanup(self) -> Awaitable[Any]: ...

    def before_each(self, info: Mapping[str, Any]) -> Awaitable[Any]: ...

    def after_each(self, info: Mapping[str, Any]) -> Awaitable[Any]: ...


def current_platform(device: Device) -> Platform:
    """Ask the live device connection which platform it runs on."""
    return Platform(str(device.get_platform()).lower())


# ---------- Loading ----------

def load_backend(path: Optional[str], options: Optional[HelperOptions] = None) -> Backend:
    """
    Import `module:factory` and call the factory (with `options` when given).

    A path without ':' names a module exposing `create_backend`.
    """
    if not path:
        raise BackendNotConfigured("No backend configured (set GREYBOX_BACKEND or pass --backend)")

    module_name, _, attr = path.partition(":")
    attr = attr or "create_backend"
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise BackendLoadError(f"Cannot import backend module '{module_name}': {e}") from e

    factory: Optional[Callable[..., Backend]] = getattr(module, attr, None)
    if factory is None or not callable(factory):
        raise BackendLoadError(f"Backend module '{module_name}' has no callable '{attr}'")

    log.debug(f"Loading backend from {module_name}:{attr}")
    return factory(options) if options is not None else factory()
