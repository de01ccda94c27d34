from __future__ import annotations

"""Scenario schema and loader
-----------------------------
Pydantic models for YAML scenarios (a suite of tests, each a list of helper
actions or platform-scoped blocks) and the loader, with multi-document files
and ${ENV} substitution.
"""

import os
import re
from pathlib import Path
from typing import Any, Literal, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from greybox.core.backend import Platform


LocatorValue = Union[str, dict[str, Any]]


# ---------- Step models ----------


class StepBase(BaseModel):
    name: Optional[str] = Field(default=None, description="Human-friendly step label")

    model_config = {"extra": "forbid"}

    def args(self) -> Tuple[Any, ...]:
        return ()


class StepDevice(StepBase):
    action: Literal[
        "relaunch_app",
        "launch_app",
        "install_app",
        "shake_device",
        "go_back",
        "set_landscape_orientation",
        "set_portrait_orientation",
    ]


class StepLocator(StepBase):
    action: Literal[
        "tap",
        "click",
        "see_element",
        "dont_see_element",
        "see_element_exists",
        "dont_see_element_exists",
    ]
    locator: LocatorValue
    context: Optional[LocatorValue] = None

    def args(self) -> Tuple[Any, ...]:
        return (self.locator, self.context)


class StepScroll(StepBase):
    action: Literal["scroll_up", "scroll_down", "scroll_left", "scroll_right", "clear_field"]
    locator: LocatorValue

    def args(self) -> Tuple[Any, ...]:
        return (self.locator,)


class StepText(StepBase):
    action: Literal["see", "dont_see"]
    text: str
    context: Optional[LocatorValue] = None

    def args(self) -> Tuple[Any, ...]:
        return (self.text, self.context)


class StepMultiTap(StepBase):
    action: Literal["multi_tap"]
    locator: LocatorValue
    num: int = Field(..., ge=1)
    context: Optional[LocatorValue] = None

    def args(self) -> Tuple[Any, ...]:
        return (self.locator, self.num, self.context)


class StepLongPress(StepBase):
    action: Literal["long_press"]
    locator: LocatorValue
    sec: float = Field(..., ge=0)
    context: Optional[LocatorValue] = None

    def args(self) -> Tuple[Any, ...]:
        return (self.locator, self.sec, self.context)


class StepTapAtPoint(StepBase):
    action: Literal["click_at_point"]
    locator: LocatorValue
    x: float = 0
    y: float = 0

    def args(self) -> Tuple[Any, ...]:
        return (self.locator, self.x, self.y)


class StepField(StepBase):
    action: Literal["fill_field", "append_field"]
    locator: LocatorValue
    value: str

    def args(self) -> Tuple[Any, ...]:
        return (self.locator, self.value)


class StepSwipe(StepBase):
    action: Literal["swipe_up", "swipe_down", "swipe_left", "swipe_right"]
    locator: LocatorValue
    speed: Literal["slow", "fast"] = "slow"

    def args(self) -> Tuple[Any, ...]:
        return (self.locator, self.speed)


class StepWait(StepBase):
    action: Literal["wait"]
    sec: float = Field(..., ge=0)

    def args(self) -> Tuple[Any, ...]:
        return (self.sec,)


class StepWaitFor(StepBase):
    action: Literal["wait_for_element", "wait_for_element_visible", "wait_to_hide"]
    locator: LocatorValue
    sec: Optional[float] = Field(default=None, ge=0)

    def args(self) -> Tuple[Any, ...]:
        return (self.locator, self.sec)


class PlatformBlock(BaseModel):
    """Steps that only run when the device reports `platform`."""

    platform: Platform
    name: Optional[str] = None
    steps: list["Step"] = Field(..., min_length=1)

    model_config = {"extra": "forbid"}


Step = Union[
    StepDevice,
    StepLocator,
    StepScroll,
    StepText,
    StepMultiTap,
    StepLongPress,
    StepTapAtPoint,
    StepField,
    StepSwipe,
    StepWait,
    StepWaitFor,
    PlatformBlock,
]

PlatformBlock.model_rebuild()


# ---------- Scenario model ----------


class CaseSpec(BaseModel):
    title: str
    steps: list[Step] = Field(..., min_length=1)

    @field_validator("title")
    @classmethod
    def _title_non_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("test title cannot be empty")
        return v


class Scenario(BaseModel):
    version: str = Field(default="1")
    suite: str = Field(..., description="Suite title, e.g. 'Login'")
    description: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    tests: list[CaseSpec] = Field(..., min_length=1)

    @field_validator("suite")
    @classmethod
    def _suite_non_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("suite cannot be empty")
        return v

    def step_count(self) -> int:
        return sum(len(t.steps) for t in self.tests)


# ---------- Loading ----------

_ENV_REF = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def _subst_env(obj: Any) -> Any:
    """Replace ${NAME} in every string; unknown names are left as written."""
    if isinstance(obj, str):
        return _ENV_REF.sub(lambda m: os.environ.get(m.group(1), m.group(0)), obj)
    if isinstance(obj, list):
        return [_subst_env(x) for x in obj]
    if isinstance(obj, dict):
        return {k: _subst_env(v) for k, v in obj.items()}
    return obj


def _validate(data: Any, where: str) -> Scenario:
    if not isinstance(data, dict):
        raise ValueError(f"{where} must define a mapping/object at the top level.")
    try:
        return Scenario.model_validate(_subst_env(data))
    except ValidationError as ve:
        lines = [f"Invalid scenario {where}:"]
        for e in ve.errors():
            loc = ".".join(str(p) for p in e.get("loc", []))
            lines.append(f"  - {loc}: {e.get('msg', 'invalid value')}")
        raise ValueError("\n".join(lines)) from ve


def load_scenarios_file(path: Path | str) -> list[Scenario]:
    """Load one or more scenarios from a YAML file (multi-document supported)."""
    sc_path = Path(path)
    if not sc_path.exists():
        raise FileNotFoundError(f"Scenario file not found: {sc_path}")
    try:
        docs = list(yaml.safe_load_all(sc_path.read_text(encoding="utf-8")))
    except yaml.YAMLError as ye:
        raise ValueError(f"YAML parse error in {sc_path}: {ye}") from ye

    out: list[Scenario] = []
    for idx, data in enumerate(docs, start=1):
        if data is None:
            continue
        where = f"'{sc_path}'" if len(docs) == 1 else f"'{sc_path}' (document {idx})"
        out.append(_validate(data, where))
    if not out:
        raise ValueError(f"No scenario documents found in {sc_path}")
    return out


def load_scenario(path: Path | str) -> Scenario:
    """Load a single-document scenario file."""
    scenarios = load_scenarios_file(path)
    if len(scenarios) > 1:
        raise ValueError(f"{path} holds {len(scenarios)} scenarios; use load_scenarios_file")
    return scenarios[0]


def find_scenario_files(root: Path, recursive: bool = True) -> list[Path]:
    if recursive:
        return sorted(list(root.rglob("*.yaml")) + list(root.rglob("*.yml")))
    return sorted(list(root.glob("*.yaml")) + list(root.glob("*.yml")))


__all__ = [
    "Step",
    "PlatformBlock",
    "CaseSpec",
    "Scenario",
    "load_scenario",
    "load_scenarios_file",
    "find_scenario_files",
]
