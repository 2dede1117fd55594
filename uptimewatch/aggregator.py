"""Per-domain availability aggregation."""

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from urllib.parse import urlsplit

from .config import Endpoint
from .models import DomainStat


class RegistryError(Exception):
    """Raised when the domain registry cannot be built from the endpoints."""

    pass


class UnknownDomainError(KeyError):
    """Raised when updating a domain that was not registered at startup."""

    pass


def domain_of(url: str) -> str:
    """Return the host (with port, without credentials) of ``url``.

    Raises:
        RegistryError: If the URL cannot be parsed or has no host.
    """
    try:
        parts = urlsplit(url)
        # Accessing the port validates it.
        parts.port
    except ValueError as e:
        raise RegistryError(f"Invalid endpoint URL '{url}': {e}")

    host = parts.netloc.rpartition("@")[2]
    if not parts.scheme or not host:
        raise RegistryError(f"Invalid endpoint URL '{url}': not an absolute URL")
    return host


class DomainAggregator:
    """Accumulates up/total counts for a fixed set of domains.

    The registry is built once from the endpoints and never changes. Only
    the owner of the aggregator writes to it; readers get immutable
    snapshots.
    """

    def __init__(self, endpoints: Iterable[Endpoint]) -> None:
        """Build the registry.

        Raises:
            RegistryError: If any endpoint URL cannot be mapped to a domain.
        """
        self._domain_by_url: dict[str, str] = {}
        for endpoint in endpoints:
            self._domain_by_url[endpoint.url] = domain_of(endpoint.url)

        self._domains = tuple(sorted(set(self._domain_by_url.values())))
        self._stats: dict[str, DomainStat] = {domain: DomainStat() for domain in self._domains}

    @property
    def domains(self) -> tuple[str, ...]:
        """Distinct domains in lexicographic order."""
        return self._domains

    def domain_for(self, url: str) -> str:
        """Return the registered domain of an endpoint URL."""
        try:
            return self._domain_by_url[url]
        except KeyError:
            raise UnknownDomainError(url) from None

    def update(self, domain: str, was_up: bool) -> None:
        """Count one request against ``domain``, as up if ``was_up``.

        Raises:
            UnknownDomainError: If the domain was not registered.
        """
        try:
            stat = self._stats[domain]
        except KeyError:
            raise UnknownDomainError(domain) from None
        self._stats[domain] = stat.record(was_up)

    def get(self, domain: str) -> DomainStat:
        """Return the current counters of a registered domain."""
        try:
            return self._stats[domain]
        except KeyError:
            raise UnknownDomainError(domain) from None

    def snapshot(self) -> Mapping[str, DomainStat]:
        """Return a read-only view of the current counters."""
        return MappingProxyType(dict(self._stats))
