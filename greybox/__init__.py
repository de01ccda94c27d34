"""
greybox
-------
Action-oriented test helper for grey-box mobile automation backends.

    from greybox import MobileHelper, StepRecorder, Actor, load_options
"""

from greybox.core.backend import Platform, load_backend
from greybox.core.helper import CaseInfo, MobileHelper
from greybox.core.recorder import Actor, StepRecorder
from greybox.selectors.locator import LocatorMode, Resolver
from greybox.utils.config import HelperOptions, load_options

__version__ = "0.1.0"

__all__ = [
    "Platform",
    "load_backend",
    "CaseInfo",
    "MobileHelper",
    "Actor",
    "StepRecorder",
    "LocatorMode",
    "Resolver",
    "HelperOptions",
    "load_options",
]
