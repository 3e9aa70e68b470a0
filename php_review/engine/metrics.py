"""Per-rule timing samples.

Plain storage: samples are appended per rule type and phase and handed
back as-is. Callers sum or average them as they need. Recording never
raises, whatever the caller passes in.
"""

from threading import Lock

PARSE_TIME = "parse_time"
CHECK_TIME = "check_time"
TOTAL_TIME = "total_time"

PHASES = (PARSE_TIME, CHECK_TIME, TOTAL_TIME)


class PerformanceMetrics:
    """Append-only timing samples keyed by rule type and phase."""

    def __init__(self) -> None:
        self._samples: dict[str, dict[str, list[float]]] = {}
        self._lock = Lock()

    def record(self, rule_type: str, phase: str, duration: float) -> None:
        """Append a duration sample in seconds."""
        try:
            value = float(duration)
        except (TypeError, ValueError, OverflowError):
            value = 0.0
        with self._lock:
            phases = self._samples.setdefault(str(rule_type), {})
            phases.setdefault(str(phase), []).append(value)

    def metrics(self) -> dict[str, dict[str, list[float]]]:
        """Copy of all samples: rule type -> phase -> durations."""
        with self._lock:
            return {
                rule_type: {phase: list(values) for phase, values in phases.items()}
                for rule_type, phases in self._samples.items()
            }

    def samples(self, rule_type: str, phase: str) -> list[float]:
        with self._lock:
            return list(self._samples.get(rule_type, {}).get(phase, []))

    def clear(self) -> None:
        with self._lock:
            self._samples.clear()


__all__ = [
    "CHECK_TIME",
    "PARSE_TIME",
    "PHASES",
    "PerformanceMetrics",
    "TOTAL_TIME",
]
