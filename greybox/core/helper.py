from __future__ import annotations

"""Mobile helper
----------------
Action and assertion vocabulary (tap, see, fill_field, wait_for_element, ...)
mapped onto a grey-box mobile backend. Each method resolves its locator(s),
optionally scopes them inside a context, and forwards to the backend.
Backend failures propagate unchanged; nothing here retries.
"""

import asyncio
import inspect
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from greybox.core.backend import Backend, Element, Platform, current_platform
from greybox.core.recorder import StepRecorder
from greybox.selectors.locator import LocatorInput, LocatorMode, Resolver, compose
from greybox.utils.config import HelperOptions
from greybox.utils.logger import get_logger
from greybox.utils.timing import async_sleep_ms, measure, sec_to_ms


_SESSION_LABELS = {Platform.IOS: "iOS", Platform.ANDROID: "Android"}


@dataclass(frozen=True)
class CaseInfo:
    """What the lifecycle hooks report about the running test."""

    title: str
    full_title: str = ""

    def payload(self, status: Optional[str] = None) -> Dict[str, Any]:
        d: Dict[str, Any] = {"title": self.title, "full_name": self.full_title or self.title}
        if status is not None:
            d["status"] = status
        return d


class MobileHelper:
    """
    Façade over a backend. Construct one per suite:

        helper = MobileHelper(backend, StepRecorder(), load_options({"configuration": "ios.sim.debug"}))
    """

    def __init__(
        self,
        backend: Backend,
        recorder: StepRecorder,
        options: HelperOptions,
        *,
        default_wait_sec: float = 5,
    ) -> None:
        self.backend = backend
        self.device = backend.device
        self.recorder = recorder
        self.options = options
        self.default_wait_sec = default_wait_sec
        self.resolver = Resolver(backend.by, self.platform)
        self.log = get_logger(__name__)

    def platform(self) -> Platform:
        return current_platform(self.device)

    def _element(
        self,
        locator: LocatorInput,
        mode: LocatorMode = LocatorMode.type,
        context: Optional[LocatorInput] = None,
    ) -> Element:
        return self.backend.element(self.resolver.resolve_within(locator, context, mode))

    # ---------- Lifecycle hooks ----------

    async def before_suite(self) -> None:
        opts = self.options
        self.log.info(f"Initializing backend (configuration={opts.configuration}, reuse={opts.reuse})")
        await self.backend.init(opts, reuse=opts.reuse, launch_app=opts.launch_app)
        if opts.reload_react_native:
            await self.device.launch_app(new_instance=True)

    async def after_suite(self) -> None:
        await self.backend.cleanup()

    async def before(self, test: CaseInfo) -> None:
        if self.options.reload_react_native:
            await self.device.reload_react_native()
        else:
            await self.device.launch_app(new_instance=True)

    async def test(self, test: CaseInfo) -> None:
        await self.backend.before_each(test.payload())

    async def passed(self, test: CaseInfo) -> None:
        await self.backend.after_each(test.payload("passed"))

    async def failed(self, test: CaseInfo) -> None:
        await self.backend.after_each(test.payload("failed"))

    # ---------- Locating ----------

    def locate(self, locator: LocatorInput) -> Element:
        return self._element(locator)

    def locate_clickable(self, locator: LocatorInput) -> Element:
        return self._element(locator)

    # ---------- App & device ----------

    async def relaunch_app(self) -> Any:
        return await self.device.launch_app(new_instance=True)

    async def launch_app(self) -> Any:
        """Launch the app; use relaunch_app for a fresh instance."""
        return await self.device.launch_app(new_instance=False)

    async def install_app(self) -> Any:
        return await self.device.install_app()

    async def shake_device(self) -> None:
        await self.device.shake()

    async def go_back(self) -> None:
        """Hardware back button (Android)."""
        await self.device.press_back()

    async def set_landscape_orientation(self) -> None:
        await self.device.set_orientation("landscape")

    async def set_portrait_orientation(self) -> None:
        await self.device.set_orientation("portrait")

    # ---------- Platform-scoped blocks ----------

    async def run_on_platform(self, platform: Platform | str, block: Callable[[], Any]) -> Any:
        """
        Run `block` only when the device reports `platform`.

        The block's actions are queued inside a named recorder session:

            I.run_on_platform("ios", lambda: I.tap("~Done"))

        On any other platform this returns at once and the block is never
        called. The session is restored even when the block raises.
        """
        target = Platform(platform)
        if self.platform() != target:
            self.log.debug(f"Skipping {target.value}-only block")
            return None

        label = _SESSION_LABELS[target]
        session = self.recorder.session
        session.start(f"{label}-only actions")
        restore_name = f"restore from {label} session"
        try:
            result = block()
            if inspect.isawaitable(result):
                await result
        except BaseException:
            restored = self.recorder.add(restore_name, session.restore, always=True)
            # the block's own error wins; scoped step failures stay on the chain
            await asyncio.gather(restored, return_exceptions=True)
            raise
        self.recorder.add(restore_name, session.restore, always=True)
        return await self.recorder.promise()

    async def run_on_ios(self, block: Callable[[], Any]) -> Any:
        return await self.run_on_platform(Platform.IOS, block)

    async def run_on_android(self, block: Callable[[], Any]) -> Any:
        return await self.run_on_platform(Platform.ANDROID, block)

    # ---------- Taps ----------

    async def tap(self, locator: LocatorInput, context: Optional[LocatorInput] = None) -> None:
        await self.click(locator, context)

    @measure("click")
    async def click(self, locator: LocatorInput, context: Optional[LocatorInput] = None) -> None:
        """
        Tap an element. A bare string is matched as visible text:

            I.click("Login")
            I.click("#login-button")
            I.click("Login", "#auth-form")
        """
        await self._element(locator, LocatorMode.text, context).tap()

    @measure("multi_tap")
    async def multi_tap(self, locator: LocatorInput, num: int, context: Optional[LocatorInput] = None) -> None:
        await self._element(locator, LocatorMode.text, context).multi_tap(num)

    @measure("long_press")
    async def long_press(self, locator: LocatorInput, sec: float, context: Optional[LocatorInput] = None) -> None:
        await self._element(locator, LocatorMode.text, context).long_press(sec_to_ms(sec))

    @measure("click_at_point")
    async def click_at_point(self, locator: LocatorInput, x: float = 0, y: float = 0) -> None:
        await self._element(locator, LocatorMode.text).tap_at_point({"x": x, "y": y})

    # ---------- Assertions ----------

    def see(self, text: str, context: Optional[LocatorInput] = None) -> Any:
        """Text is on screen, or `context` carries exactly this text."""
        expect = self.backend.expect
        if context is not None:
            return expect(self._element(context)).to_have_text(text)
        return expect(self.backend.element(self.backend.by.text(text))).to_exist()

    def dont_see(self, text: str, context: Optional[LocatorInput] = None) -> Any:
        selector = self.backend.by.text(text)
        if context is not None:
            selector = compose(self.resolver.resolve(context), selector)
        return self.backend.expect(self.backend.element(selector)).to_be_not_visible()

    def see_element(self, locator: LocatorInput, context: Optional[LocatorInput] = None) -> Any:
        return self.backend.expect(self._element(locator, context=context)).to_be_visible()

    def dont_see_element(self, locator: LocatorInput, context: Optional[LocatorInput] = None) -> Any:
        return self.backend.expect(self._element(locator, context=context)).to_be_not_visible()

    def see_element_exists(self, locator: LocatorInput, context: Optional[LocatorInput] = None) -> Any:
        """Present in the hierarchy, visible or not."""
        return self.backend.expect(self._element(locator, context=context)).to_exist()

    def dont_see_element_exists(self, locator: LocatorInput, context: Optional[LocatorInput] = None) -> Any:
        return self.backend.expect(self._element(locator, context=context)).to_not_exist()

    # ---------- Fields ----------

    @measure("fill_field")
    async def fill_field(self, field: LocatorInput, value: str) -> None:
        """Replace the field's content with `value`."""
        el = self._element(field, LocatorMode.text)
        await el.tap()
        await el.replace_text(value)

    @measure("clear_field")
    async def clear_field(self, field: LocatorInput) -> None:
        el = self._element(field, LocatorMode.text)
        await el.tap()
        await el.clear_text()

    @measure("append_field")
    async def append_field(self, field: LocatorInput, value: str) -> None:
        el = self._element(field, LocatorMode.text)
        await el.tap()
        await el.type_text(value)

    # ---------- Scrolls & swipes ----------

    async def scroll_up(self, locator: LocatorInput) -> None:
        await self._element(locator).scroll_to("top")

    async def scroll_down(self, locator: LocatorInput) -> None:
        await self._element(locator).scroll_to("bottom")

    async def scroll_left(self, locator: LocatorInput) -> None:
        await self._element(locator).scroll_to("left")

    async def scroll_right(self, locator: LocatorInput) -> None:
        await self._element(locator).scroll_to("right")

    async def swipe_up(self, locator: LocatorInput, speed: str = "slow") -> None:
        await self._element(locator).swipe("up", speed)

    async def swipe_down(self, locator: LocatorInput, speed: str = "slow") -> None:
        await self._element(locator).swipe("down", speed)

    async def swipe_left(self, locator: LocatorInput, speed: str = "slow") -> None:
        await self._element(locator).swipe("left", speed)

    async def swipe_right(self, locator: LocatorInput, speed: str = "slow") -> None:
        await self._element(locator).swipe("right", speed)

    # ---------- Waits ----------

    async def wait(self, sec: float) -> None:
        await async_sleep_ms(sec_to_ms(sec))

    @measure("wait_for_element")
    async def wait_for_element(self, locator: LocatorInput, sec: Optional[float] = None) -> Any:
        """Wait until the element exists in the hierarchy (default 5 s)."""
        ms = sec_to_ms(self.default_wait_sec if sec is None else sec)
        return await self.backend.wait_for(self._element(locator)).to_exist().with_timeout(ms)

    @measure("wait_for_element_visible")
    async def wait_for_element_visible(self, locator: LocatorInput, sec: Optional[float] = None) -> Any:
        ms = sec_to_ms(self.default_wait_sec if sec is None else sec)
        return await self.backend.wait_for(self._element(locator)).to_be_visible().with_timeout(ms)

    @measure("wait_to_hide")
    async def wait_to_hide(self, locator: LocatorInput, sec: Optional[float] = None) -> Any:
        ms = sec_to_ms(self.default_wait_sec if sec is None else sec)
        return await self.backend.wait_for(self._element(locator)).to_be_not_visible().with_timeout(ms)
