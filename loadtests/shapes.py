"""
Scenario descriptors and the Locust load shape that runs them.

Traffic is described declaratively, using k6 executor names and
fields:

- ``ramping-vus`` -- the number of concurrent users follows a list of
  stages, moving linearly from one stage target to the next
- ``constant-vus`` -- a fixed number of users for a fixed duration
- ``constant-arrival-rate`` -- a fixed number of iterations per time
  unit, produced by a pool of users each running at a constant
  throughput

Descriptors are immutable and know nothing about Locust beyond two
hooks: :meth:`tick` (how many users should be running at a given moment)
and :meth:`apply_to` (adjust the pacing of the user class they drive).
:class:`ScenarioShape` runs every descriptor of a profile in parallel.

Key Concepts Demonstrated:
- Frozen dataclasses as configuration records
- Parsing human duration strings (``"2m30s"``) into seconds
- ``LoadTestShape.tick`` pinning each user class with ``fixed_count`` so
  several scenarios can share one run
- A ``UsersDispatcher`` subclass that keeps those per-class counts exact
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from locust import LoadTestShape, User, constant_throughput
from locust.dispatch import UsersDispatcher

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_UNIT_SECONDS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def parse_duration(value: str | int | float) -> float:
    """
    Convert ``"30s"``, ``"1m"``, ``"2m30s"``, ``"1h"``, ``"500ms"`` or a
    bare number of seconds into seconds.

    Raises:
        ValueError: If *value* is empty, negative or not a duration.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = str(value).strip()
        if re.fullmatch(r"\d+(?:\.\d+)?", text):
            seconds = float(text)
        else:
            parts = _DURATION_PART.findall(text)
            if not text or "".join(number + unit for number, unit in parts) != text:
                raise ValueError(f"Invalid duration: {value!r}")
            seconds = sum(float(number) * _UNIT_SECONDS[unit] for number, unit in parts)

    if seconds < 0:
        raise ValueError(f"Duration must not be negative: {value!r}")
    return seconds


@dataclass(frozen=True)
class Stage:
    """Ramp to *target* users over *duration* seconds."""

    duration: float
    target: int


@dataclass(frozen=True)
class RampingVUs:
    """Concurrent users following a list of linear stages."""

    name: str
    exec: str
    stages: tuple[Stage, ...]
    start_vus: int = 0

    executor = "ramping-vus"

    @property
    def peak_vus(self) -> int:
        return max([self.start_vus, *(stage.target for stage in self.stages)])

    @property
    def total_duration(self) -> float:
        return sum(stage.duration for stage in self.stages)

    def users_at(self, run_time: float) -> float:
        """Interpolated user count at *run_time*; the last target once finished."""
        previous = self.start_vus
        elapsed = 0.0
        for stage in self.stages:
            if run_time < elapsed + stage.duration:
                progress = (run_time - elapsed) / stage.duration
                return previous + (stage.target - previous) * progress
            elapsed += stage.duration
            previous = stage.target
        return float(previous)

    def tick(self, run_time: float) -> tuple[int, float] | None:
        if run_time >= self.total_duration:
            return None

        previous = self.start_vus
        elapsed = 0.0
        for stage in self.stages:
            if run_time < elapsed + stage.duration:
                delta = abs(stage.target - previous)
                spawn_rate = max(math.ceil(delta / stage.duration), 1)
                return round(self.users_at(run_time)), spawn_rate
            elapsed += stage.duration
            previous = stage.target
        return None

    def apply_to(self, user_class: type) -> None:
        """Ramping users keep their own ``wait_time``."""


@dataclass(frozen=True)
class ConstantVUs:
    """A fixed number of users for a fixed duration."""

    name: str
    exec: str
    vus: int
    duration: float

    executor = "constant-vus"

    @property
    def peak_vus(self) -> int:
        return self.vus

    @property
    def total_duration(self) -> float:
        return self.duration

    def tick(self, run_time: float) -> tuple[int, float] | None:
        if run_time >= self.duration:
            return None
        return self.vus, max(self.vus, 1)

    def apply_to(self, user_class: type) -> None:
        """Constant users keep their own ``wait_time``."""


@dataclass(frozen=True)
class ConstantArrivalRate:
    """
    *rate* iterations per *time_unit* seconds, regardless of latency.

    Locust has no open-model executor, so the rate is spread over
    ``min(pre_allocated_vus, max_vus)`` users, each paced with
    ``constant_throughput``.  A user whose iteration takes longer than
    its slot simply falls behind; no extra users are started.
    """

    name: str
    exec: str
    rate: float
    time_unit: float
    duration: float
    pre_allocated_vus: int
    max_vus: int

    executor = "constant-arrival-rate"

    @property
    def peak_vus(self) -> int:
        return self.max_vus

    @property
    def total_duration(self) -> float:
        return self.duration

    @property
    def allocated_vus(self) -> int:
        return max(min(self.pre_allocated_vus, self.max_vus), 1)

    @property
    def iterations_per_second(self) -> float:
        return self.rate / self.time_unit

    @property
    def per_user_throughput(self) -> float:
        return self.iterations_per_second / self.allocated_vus

    def tick(self, run_time: float) -> tuple[int, float] | None:
        if run_time >= self.duration:
            return None
        return self.allocated_vus, self.allocated_vus

    def apply_to(self, user_class: type) -> None:
        """Pace *user_class* so the allocated users produce :attr:`rate`."""
        user_class.wait_time = constant_throughput(self.per_user_throughput)


Scenario = RampingVUs | ConstantVUs | ConstantArrivalRate


def _positive_int(mapping: Mapping[str, Any], key: str, name: str, *, allow_zero: bool = False) -> int:
    try:
        value = int(mapping[key])
    except KeyError as exc:
        raise ValueError(f"Scenario {name!r} is missing {key!r}") from exc
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Scenario {name!r} has non-integer {key!r}: {mapping[key]!r}") from exc

    if value < 0 or (value == 0 and not allow_zero):
        raise ValueError(f"Scenario {name!r} has out-of-range {key!r}: {value}")
    return value


def _duration(mapping: Mapping[str, Any], key: str, name: str) -> float:
    if key not in mapping:
        raise ValueError(f"Scenario {name!r} is missing {key!r}")
    return parse_duration(mapping[key])


def scenario_from_dict(name: str, mapping: Mapping[str, Any]) -> Scenario:
    """
    Build a descriptor from a k6-style scenario mapping.

    Example::

        scenario_from_dict("complete_workflow", {
            "executor": "ramping-vus",
            "startVUs": 0,
            "stages": [{"duration": "1m", "target": 10}],
            "exec": "full_workflow",
        })

    Raises:
        ValueError: On an unknown executor or missing/invalid fields.
    """
    executor = mapping.get("executor")
    exec_name = str(mapping.get("exec") or name)

    if executor == "ramping-vus":
        raw_stages: Sequence[Mapping[str, Any]] = mapping.get("stages") or []
        if not raw_stages:
            raise ValueError(f"Scenario {name!r} needs at least one stage")
        stages = tuple(
            Stage(
                duration=_duration(stage, "duration", name),
                target=_positive_int(stage, "target", name, allow_zero=True),
            )
            for stage in raw_stages
        )
        if any(stage.duration <= 0 for stage in stages):
            raise ValueError(f"Scenario {name!r} has a stage without duration")
        start_vus = _positive_int(mapping, "startVUs", name, allow_zero=True) if "startVUs" in mapping else 0
        return RampingVUs(name=name, exec=exec_name, stages=stages, start_vus=start_vus)

    if executor == "constant-vus":
        return ConstantVUs(
            name=name,
            exec=exec_name,
            vus=_positive_int(mapping, "vus", name),
            duration=_duration(mapping, "duration", name),
        )

    if executor == "constant-arrival-rate":
        time_unit = parse_duration(mapping.get("timeUnit", "1s"))
        if time_unit <= 0:
            raise ValueError(f"Scenario {name!r} has a zero timeUnit")
        pre_allocated = _positive_int(mapping, "preAllocatedVUs", name)
        return ConstantArrivalRate(
            name=name,
            exec=exec_name,
            rate=float(_positive_int(mapping, "rate", name)),
            time_unit=time_unit,
            duration=_duration(mapping, "duration", name),
            pre_allocated_vus=pre_allocated,
            max_vus=_positive_int(mapping, "maxVUs", name) if "maxVUs" in mapping else pre_allocated,
        )

    raise ValueError(f"Scenario {name!r} has unknown executor {executor!r}")


class ScenarioDispatcher(UsersDispatcher):
    """
    Users dispatcher that holds every class at its ``fixed_count``.

    Locust only tops fixed-count classes up on the first dispatch and
    after removals, and removes users newest first whatever their class.  Scenarios change
    their targets on every tick, so each new dispatch first stops the
    users of classes that are above their count (or no longer active)
    and then tops every class up to its count again.
    """

    def new_dispatch(
        self, target_user_count: int, spawn_rate: float, user_classes: list[type[User]] | None = None
    ) -> None:
        self._remove_surplus_users(user_classes if user_classes is not None else self._user_classes)
        super().new_dispatch(target_user_count, spawn_rate, user_classes)
        self._try_dispatch_fixed = True

    def _remove_surplus_users(self, user_classes: Sequence[type[User]]) -> None:
        wanted = {user_class.__name__: user_class.fixed_count for user_class in user_classes}
        counts: dict[str, int] = {}
        for users in self._users_on_workers.values():
            for name, count in users.items():
                counts[name] = counts.get(name, 0) + count

        # Classes dispatched by weight keep their users.
        surplus = {
            name: count - wanted.get(name, 0)
            for name, count in counts.items()
            if name not in wanted or wanted[name] > 0
        }
        if not any(count > 0 for count in surplus.values()):
            return

        kept = []
        for worker_node, name in reversed(self._active_users):
            if surplus.get(name, 0) > 0:
                surplus[name] -= 1
                self._users_on_workers[worker_node.id][name] -= 1
            else:
                kept.append((worker_node, name))
        self._active_users = kept[::-1]


class ScenarioShape(LoadTestShape):
    """
    Run several scenario descriptors side by side.

    Each tick pins every scenario's user class to that scenario's target
    through ``fixed_count`` and returns the total with the classes that
    currently have users.  Classes whose scenario has finished drop back
    to zero.  :class:`ScenarioDispatcher` keeps Locust's dispatch in line
    with those counts.  The run stops once every scenario has finished.

    The shape starts empty; the locustfile's ``init`` listener calls
    :meth:`configure` with the selected profile.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.scenarios: tuple[Scenario, ...] = ()
        self.user_classes: dict[str, type] = {}

    def configure(self, scenarios: Sequence[Scenario], user_classes: Mapping[str, type]) -> None:
        """
        Attach *scenarios*, resolving each ``exec`` name in *user_classes*.

        Raises:
            KeyError: If a scenario targets an unknown user class.
        """
        for scenario in scenarios:
            if scenario.exec not in user_classes:
                raise KeyError(f"Scenario {scenario.name!r} targets unknown exec {scenario.exec!r}")
            scenario.apply_to(user_classes[scenario.exec])

        self.scenarios = tuple(scenarios)
        self.user_classes = dict(user_classes)

    def tick(self) -> tuple[int, float, list[type]] | None:
        return self.tick_at(self.get_run_time())

    def tick_at(self, run_time: float) -> tuple[int, float, list[type]] | None:
        spawn_rate = 1.0
        users_per_class: dict[type, int] = {}
        running: list[type] = []

        for scenario in self.scenarios:
            user_class = self.user_classes[scenario.exec]
            users_per_class.setdefault(user_class, 0)
            step = scenario.tick(run_time)
            if step is None:
                continue
            users, rate = step
            users_per_class[user_class] += users
            spawn_rate = max(spawn_rate, float(rate))
            if user_class not in running:
                running.append(user_class)

        for user_class, users in users_per_class.items():
            user_class.fixed_count = users

        if not running:
            return None

        # A ramp still at zero users keeps its class listed so the run goes on.
        active_classes = [user_class for user_class in running if users_per_class[user_class]] or running
        return sum(users_per_class.values()), spawn_rate, active_classes
