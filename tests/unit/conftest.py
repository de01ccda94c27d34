from typing import Any, List, Tuple

import pytest

from greybox.core.helper import MobileHelper
from greybox.core.recorder import Actor, StepRecorder
from greybox.selectors.spec import SpecSelectors
from greybox.utils.config import HelperOptions


class FakeElement:
    def __init__(self, backend: "FakeBackend", selector: Any):
        self.backend = backend
        self.selector = selector

    async def _record(self, op: str, *args: Any) -> None:
        self.backend.calls.append((op, self.selector, *args))
        if (op, self.selector) in self.backend.fail_on:
            raise AssertionError(f"{op} failed on {self.selector}")

    async def tap(self):
        await self._record("tap")

    async def multi_tap(self, times):
        await self._record("multi_tap", times)

    async def long_press(self, duration_ms):
        await self._record("long_press", duration_ms)

    async def tap_at_point(self, point):
        await self._record("tap_at_point", dict(point))

    async def type_text(self, text):
        await self._record("type_text", text)

    async def replace_text(self, text):
        await self._record("replace_text", text)

    async def clear_text(self):
        await self._record("clear_text")

    async def scroll_to(self, edge):
        await self._record("scroll_to", edge)

    async def swipe(self, direction, speed):
        await self._record("swipe", direction, speed)


class FakeExpectation:
    def __init__(self, element: FakeElement):
        self.element = element

    def _check(self, name: str, *args: Any) -> Tuple:
        entry = (f"expect.{name}", self.element.selector, *args)
        self.element.backend.calls.append(entry)
        return entry

    def to_exist(self):
        return self._check("to_exist")

    def to_not_exist(self):
        return self._check("to_not_exist")

    def to_be_visible(self):
        return self._check("to_be_visible")

    def to_be_not_visible(self):
        return self._check("to_be_not_visible")

    def to_have_text(self, text):
        return self._check("to_have_text", text)


class FakeTimedWait:
    def __init__(self, element: FakeElement, name: str):
        self.element = element
        self.name = name

    async def with_timeout(self, ms):
        self.element.backend.calls.append((f"wait_for.{self.name}", self.element.selector, ms))
        return ms


class FakeWait:
    def __init__(self, element: FakeElement):
        self.element = element

    def to_exist(self):
        return FakeTimedWait(self.element, "to_exist")

    def to_be_visible(self):
        return FakeTimedWait(self.element, "to_be_visible")

    def to_be_not_visible(self):
        return FakeTimedWait(self.element, "to_be_not_visible")


class FakeDevice:
    def __init__(self, backend: "FakeBackend", platform: str):
        self.backend = backend
        self.platform = platform
        self.platform_queries = 0

    def get_platform(self):
        self.platform_queries += 1
        return self.platform

    async def launch_app(self, new_instance=False):
        self.backend.calls.append(("device.launch_app", new_instance))

    async def install_app(self):
        self.backend.calls.append(("device.install_app",))

    async def reload_react_native(self):
        self.backend.calls.append(("device.reload_react_native",))

    async def shake(self):
        self.backend.calls.append(("device.shake",))

    async def press_back(self):
        self.backend.calls.append(("device.press_back",))

    async def set_orientation(self, orientation):
        self.backend.calls.append(("device.set_orientation", orientation))


class FakeBackend:
    """In-memory backend that records every call it receives."""

    def __init__(self, platform: str = "ios"):
        self.by = SpecSelectors()
        self.device = FakeDevice(self, platform)
        self.calls: List[Tuple] = []
        self.fail_on: set = set()

    def element(self, selector):
        return FakeElement(self, selector)

    def expect(self, element):
        return FakeExpectation(element)

    def wait_for(self, element):
        return FakeWait(element)

    async def init(self, options, *, reuse, launch_app):
        self.calls.append(("init", options.configuration, reuse, launch_app))

    async def cleanup(self):
        self.calls.append(("cleanup",))

    async def before_each(self, info):
        self.calls.append(("before_each", dict(info)))

    async def after_each(self, info):
        self.calls.append(("after_each", dict(info)))


@pytest.fixture
def backend():
    return FakeBackend("ios")


@pytest.fixture
def android_backend():
    return FakeBackend("android")


@pytest.fixture
def options():
    return HelperOptions(configuration="ios.sim.debug")


@pytest.fixture
def make_helper(options):
    def _make(backend, opts=None):
        recorder = StepRecorder()
        helper = MobileHelper(backend, recorder, opts or options)
        return helper, Actor(helper, recorder), recorder

    return _make
