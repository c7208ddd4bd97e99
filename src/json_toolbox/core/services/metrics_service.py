"""
Outcome counters for the repairer and the converters.

Counter names are dotted paths:

- ``json_repair.<path>`` for each successful repair, where ``path`` is one of
  :data:`REPAIR_PATHS` other than ``failure``
- ``json_repair.pass.<name>`` for each step that rewrote the text of a
  successful repair
- ``json_repair.failure`` and ``json_repair.failure.<stage>`` for unrepairable
  input
- ``conversion.<target>.success`` / ``conversion.<target>.failure``
"""

from __future__ import annotations

import threading
from collections import Counter
from collections.abc import Iterable

REPAIR_PATHS = ("fast_path", "pipeline_success", "fallback_success", "failure")

_REPAIR_PREFIX = "json_repair."
_PASS_PREFIX = "json_repair.pass."

_lock = threading.Lock()
_counters: Counter[str] = Counter()


def record_repair(path: str, applied_passes: Iterable[str] = ()) -> None:
    """Count a successful repair taken by ``path`` and the steps it applied."""
    with _lock:
        _counters[_REPAIR_PREFIX + path] += 1
        _counters.update(_PASS_PREFIX + name for name in applied_passes)


def record_repair_failure(stage: str) -> None:
    with _lock:
        _counters[_REPAIR_PREFIX + "failure"] += 1
        _counters[f"{_REPAIR_PREFIX}failure.{stage}"] += 1


def record_conversion(target: str, succeeded: bool) -> None:
    result = "success" if succeeded else "failure"
    with _lock:
        _counters[f"conversion.{target}.{result}"] += 1


def get(name: str) -> int:
    with _lock:
        return _counters[name]


def repair_summary() -> dict[str, int]:
    """Return the number of repairs per path, zeros included."""
    with _lock:
        return {path: _counters[_REPAIR_PREFIX + path] for path in REPAIR_PATHS}


def pass_counts() -> dict[str, int]:
    """Return how often each repair step rewrote the text, most frequent first."""
    with _lock:
        counts = {
            name.removeprefix(_PASS_PREFIX): value
            for name, value in _counters.items()
            if name.startswith(_PASS_PREFIX)
        }
    return dict(sorted(counts.items(), key=lambda entry: (-entry[1], entry[0])))


def snapshot(prefix: str = "") -> dict[str, int]:
    """Return a copy of the counters, optionally limited to names under ``prefix``."""
    with _lock:
        return {
            name: value for name, value in _counters.items() if name.startswith(prefix)
        }


def reset() -> None:
    with _lock:
        _counters.clear()
