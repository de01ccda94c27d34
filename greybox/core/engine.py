from __future__ import annotations

"""Scenario engine
------------------
Runs a scenario suite through the helper: suite hooks around the run, test
hooks around each test, steps queued on the recorder through the actor.
Returns a small result dict per suite.
"""

import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional

from greybox.core.backend import Backend, load_backend
from greybox.core.helper import CaseInfo, MobileHelper
from greybox.core.recorder import Actor, StepRecorder
from greybox.core.scenario import CaseSpec, PlatformBlock, Scenario, Step, load_scenarios_file
from greybox.utils.config import HelperOptions, Settings, get_settings, load_options
from greybox.utils.logger import (
    attach_file_logger,
    bind,
    detach_file_logger,
    get_logger,
    log_with_context,
    unbind,
)


def queue_step(actor: Actor, step: Step) -> Any:
    """Queue one scenario step on the actor; platform blocks nest."""
    if isinstance(step, PlatformBlock):
        return actor.run_on_platform(step.platform, lambda: [queue_step(actor, s) for s in step.steps])
    return getattr(actor, step.action)(*step.args())


class Engine:
    """Runs scenarios against one backend instance."""

    def __init__(self, backend: Backend, options: HelperOptions, settings: Optional[Settings] = None):
        self.backend = backend
        self.options = options
        self.settings = settings or get_settings()
        self.log = get_logger(__name__)

    async def _run_case(self, helper: MobileHelper, actor: Actor, scenario: Scenario, case: CaseSpec) -> Dict[str, Any]:
        info = CaseInfo(title=case.title, full_title=f"{scenario.suite} {case.title}")
        case_log = log_with_context(self.log, test=case.title)
        case_log.info(f"Test: {case.title} ({len(case.steps)} steps)")
        helper.recorder.reset()
        try:
            await helper.before(info)
            await helper.test(info)
            for step in case.steps:
                queue_step(actor, step)
            await helper.recorder.promise()
        except Exception as e:
            case_log.error(f"Test failed: {type(e).__name__}: {e}")
            await helper.failed(info)
            return {"title": case.title, "status": "failed", "error": str(e), "error_type": type(e).__name__}
        await helper.passed(info)
        return {"title": case.title, "status": "passed"}

    async def run_suite(self, scenario: Scenario, run_log: Optional[Path] = None) -> Dict[str, Any]:
        """
        Run every test of `scenario`. Never raises for test or hook failures;
        they are reported in the returned dict as {"ok": False, ...}.
        """
        recorder = StepRecorder()
        helper = MobileHelper(self.backend, recorder, self.options, default_wait_sec=self.settings.DEFAULT_WAIT_SEC)
        actor = Actor(helper, recorder)
        handler = attach_file_logger(run_log) if run_log else None
        bind(suite=scenario.suite)
        results: List[Dict[str, Any]] = []
        error: Optional[BaseException] = None
        try:
            self.log.info(f"Starting suite: {scenario.suite} (tests={len(scenario.tests)})")
            try:
                await helper.before_suite()
                for case in scenario.tests:
                    results.append(await self._run_case(helper, actor, scenario, case))
            except Exception as e:
                self.log.exception("Suite aborted:")
                error = e
            try:
                await helper.after_suite()
            except Exception as e:
                self.log.exception("Suite cleanup failed:")
                error = error or e
        finally:
            unbind("suite")
            if handler is not None:
                detach_file_logger(handler)

        if error is not None:
            return {
                "ok": False,
                "suite": scenario.suite,
                "tests": results,
                "error": str(error),
                "error_type": type(error).__name__,
            }
        ok = all(r["status"] == "passed" for r in results)
        self.log.info(f"Suite {scenario.suite}: {'OK' if ok else 'FAILED'}")
        return {"ok": ok, "suite": scenario.suite, "tests": results}


def run_scenarios(
    path: Path | str,
    *,
    backend: Optional[Backend] = None,
    config: Optional[Dict[str, Any]] = None,
    settings: Optional[Settings] = None,
    run_log: Optional[Path] = None,
) -> List[Dict[str, Any]]:
    """
    Load every scenario in `path` and run them one after another.

    Without an explicit `backend`, the factory named by settings.BACKEND is used.
    """
    s = settings or get_settings()
    merged = s.helper_config()
    merged.update(config or {})
    options = load_options(merged, s.PROJECT_FILE)
    engine = Engine(backend or load_backend(s.BACKEND, options), options, settings=s)

    async def _run_all() -> List[Dict[str, Any]]:
        return [await engine.run_suite(sc, run_log=run_log) for sc in load_scenarios_file(path)]

    return asyncio.run(_run_all())
