from __future__ import annotations
import base64
import enum
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .config import INTERVALS, TIME_PERIODS
from .errors import ConfigError


class GenerationType(str, enum.Enum):
    image = "image"
    text = "text"


class SchedulerState(str, enum.Enum):
    idle = "idle"
    running = "running"


@dataclass(frozen=True)
class KudosDetails:
    accumulated: float = 0
    gifted: float = 0
    received: float = 0
    recurring: float = 0


@dataclass(frozen=True)
class UserDetails:
    username: str = ""
    kudos: float = 0
    worker_count: int = 0
    account_age: int = 0
    kudos_details: KudosDetails = field(default_factory=KudosDetails)


@dataclass(frozen=True)
class Sample:
    """One normalized ``find_user`` result."""

    timestamp_ms: int
    kudos: float
    image_ids: Tuple[str, ...] = ()
    text_ids: Tuple[str, ...] = ()
    user: Optional[UserDetails] = None


@dataclass(frozen=True)
class DataPoint:
    timestamp: int
    kudos: float
    kudos_change: Optional[float] = None
    image_requests: int = 0
    text_requests: int = 0

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "kudos": self.kudos,
            "kudos_change": self.kudos_change,
            "image_requests": self.image_requests,
            "text_requests": self.text_requests,
        }


@dataclass
class AggregateStats:
    kudos_per_hour: int = 0
    requests_per_hour: int = 0


@dataclass
class PollConfig:
    credential: str
    interval_ms: int = INTERVALS["5m"]
    retention_points: int = TIME_PERIODS["1hr"]

    def __post_init__(self) -> None:
        if self.interval_ms not in INTERVALS.values():
            raise ConfigError(f"Unsupported poll interval: {self.interval_ms}ms")
        if self.retention_points not in TIME_PERIODS.values():
            raise ConfigError(f"Unsupported retention: {self.retention_points} points")

    @classmethod
    def from_labels(cls, credential: str, interval: str = "5m", period: str = "1hr") -> "PollConfig":
        if interval not in INTERVALS:
            raise ConfigError(f"Unknown interval '{interval}', expected one of {', '.join(INTERVALS)}")
        if period not in TIME_PERIODS:
            raise ConfigError(f"Unknown period '{period}', expected one of {', '.join(TIME_PERIODS)}")
        return cls(credential=credential, interval_ms=INTERVALS[interval], retention_points=TIME_PERIODS[period])


@dataclass(frozen=True)
class GenerationResult:
    worker_name: str = ""
    model: str = ""
    state: str = ""
    img: Optional[str] = None
    text: Optional[str] = None

    def image_bytes(self) -> Optional[bytes]:
        if not self.img:
            return None
        return base64.b64decode(self.img)


@dataclass(frozen=True)
class GenerationDetails:
    id: str
    kind: GenerationType
    done: bool = False
    faulted: bool = False
    queue_position: int = 0
    wait_time: int = 0
    kudos: float = 0
    generations: List[GenerationResult] = field(default_factory=list)
