"""Data models for probe outcomes and per-domain availability."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from .config import Endpoint


class ProbeStatus(Enum):
    """Classification of a single probe."""

    UP = "up"
    DOWN = "down"
    UNDEFINED = "undefined"


@dataclass(frozen=True)
class ProbeResult:
    """Result of a single probe.

    Attributes:
        endpoint: Endpoint that was probed.
        status: UP for a 2xx response, DOWN for a timeout or any other status,
            UNDEFINED when the request could not be built or sent.
        error: Underlying error for UNDEFINED results, None otherwise.
    """

    endpoint: Endpoint
    status: ProbeStatus
    error: Exception | None = None

    @property
    def url(self) -> str:
        return self.endpoint.url

    @property
    def is_up(self) -> bool:
        return self.status is ProbeStatus.UP


@dataclass(frozen=True)
class DomainStat:
    """Running up/total counters for one domain.

    Attributes:
        up_count: Number of probes classified UP.
        request_count: Number of probes folded in, whatever their outcome.
    """

    up_count: int = 0
    request_count: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.up_count <= self.request_count:
            raise ValueError(
                f"Invalid domain counters: up_count={self.up_count}, request_count={self.request_count}"
            )

    def record(self, was_up: bool) -> "DomainStat":
        """Return a copy with one more request, counted as up if ``was_up``."""
        return DomainStat(
            up_count=self.up_count + (1 if was_up else 0),
            request_count=self.request_count + 1,
        )

    @property
    def availability(self) -> int | None:
        """Availability percentage rounded half away from zero, or None without data."""
        if self.request_count == 0:
            return None
        ratio = Decimal(100 * self.up_count) / Decimal(self.request_count)
        return int(ratio.quantize(Decimal(1), rounding=ROUND_HALF_UP))
