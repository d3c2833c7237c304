"""
Load traffic profiles from :file:`profiles.yml`.

A profile bundles the scenario descriptors and thresholds of one
load-test script.  Parsing happens once at startup, so a typo in a
duration or threshold expression stops the run before any traffic is
sent.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path

import yaml

from loadtests.shapes import Scenario, scenario_from_dict
from loadtests.thresholds import Threshold, parse_thresholds

PROFILES_PATH = Path(__file__).resolve().parent / "profiles.yml"


@dataclass(frozen=True)
class Profile:
    name: str
    scenarios: tuple[Scenario, ...]
    thresholds: tuple[Threshold, ...] = ()
    description: str = ""
    exec_names: frozenset[str] = field(default=frozenset())

    def select(self, exec_names: set[str] | frozenset[str]) -> Profile:
        """Copy of this profile keeping only scenarios whose ``exec`` is in *exec_names*."""
        scenarios = tuple(scenario for scenario in self.scenarios if scenario.exec in exec_names)
        return replace(
            self,
            scenarios=scenarios,
            exec_names=frozenset(scenario.exec for scenario in scenarios),
        )


def _read(path: Path) -> dict:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping of profiles")
    return data


def available_profiles(path: Path = PROFILES_PATH) -> list[str]:
    return sorted(_read(path))


def load_profile(name: str, path: Path = PROFILES_PATH) -> Profile:
    """
    Parse profile *name* from *path*.

    Raises:
        KeyError: If the profile does not exist.
        ValueError: If a scenario or threshold is malformed.
    """
    data = _read(path)
    if name not in data:
        raise KeyError(f"Unknown profile {name!r}; known profiles: {', '.join(sorted(data))}")

    raw = data[name] or {}
    raw_scenarios = raw.get("scenarios") or {}
    if not raw_scenarios:
        raise ValueError(f"Profile {name!r} defines no scenarios")

    scenarios = tuple(
        scenario_from_dict(scenario_name, mapping or {})
        for scenario_name, mapping in raw_scenarios.items()
    )
    return Profile(
        name=name,
        scenarios=scenarios,
        thresholds=tuple(parse_thresholds(raw.get("thresholds"))),
        description=str(raw.get("description", "")),
        exec_names=frozenset(scenario.exec for scenario in scenarios),
    )
