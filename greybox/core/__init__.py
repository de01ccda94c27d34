"""
Core package: backend contract, step recorder, helper façade, scenario engine.
Lightweight init to avoid import cycles; import submodules directly, e.g.:
  from greybox.core.helper import MobileHelper
  from greybox.core.recorder import StepRecorder, Actor
"""

__all__: list[str] = []
