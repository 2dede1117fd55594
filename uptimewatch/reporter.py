"""Plain-text availability report."""

import sys
from collections.abc import Mapping, Sequence
from typing import TextIO

from .models import DomainStat


def format_availability(domain: str, stat: DomainStat) -> str:
    """Format one report line for ``domain``."""
    availability = stat.availability
    if availability is None:
        return f"{domain} has no availability data"
    return f"{domain} has {availability}% availability percentage"


def print_report(
    domains: Sequence[str],
    stats: Mapping[str, DomainStat],
    stream: TextIO | None = None,
) -> None:
    """Print one availability line per domain, in registry order."""
    out = stream if stream is not None else sys.stdout
    for domain in domains:
        print(format_availability(domain, stats[domain]), file=out)
    out.flush()
