from dataclasses import dataclass, field
from enum import Enum


class PowerStates(Enum):
    AC = "AC"
    BATTERY = "BAT"


class InsertResult(Enum):
    INSERTED = "insert"
    REPLACED = "replace"


class EnergyPerfPolicy(Enum):
    PERFORMANCE = "performance"
    BALANCE_PERFORMANCE = "balance_performance"
    DEFAULT = "default"
    BALANCE_POWER = "balance_power"
    POWER = "power"


class HelperStatus(Enum):
    APPLIED = 0
    UNSUPPORTED_CPU = 1
    MISMATCH = 2
    UNKNOWN = -1


class Outcome(Enum):
    NOT_CONFIGURED = "not_configured"
    UNSUPPORTED = "unsupported"
    INVALID = "invalid"
    NO_DEVICE = "no_device"
    UNAVAILABLE = "unavailable"
    APPLIED = "applied"


@dataclass
class WriteCount:
    attempts: int = 0
    failures: int = 0

    def __repr__(self) -> str:
        return f"{self.attempts}/{self.failures}"


@dataclass
class PolicyResult:
    knob: str
    outcome: Outcome
    counts: dict[str, WriteCount] = field(default_factory=dict)
    helper_status: HelperStatus | None = None

    @property
    def failures(self) -> int:
        return sum(count.failures for count in self.counts.values())

    def count(self, node_class: str) -> WriteCount:
        return self.counts.setdefault(node_class, WriteCount())
