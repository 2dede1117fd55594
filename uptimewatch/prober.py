"""Single-request HTTP probing and outcome classification."""

import logging
import time
from threading import Event

import requests
from requests.adapters import HTTPAdapter

from . import __version__
from .config import Endpoint
from .models import ProbeResult, ProbeStatus

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = f"uptimewatch/{__version__}"

# Connections kept per host in the shared pool.
DEFAULT_POOL_SIZE = 10


def _is_success_status(status_code: int) -> bool:
    """Only 2xx counts as up; redirects are followed before we get here."""
    return 200 <= status_code < 300


class ProbeClient:
    """HTTP client shared by every probe of a run.

    Holds one ``requests.Session`` with a pooled adapter that never
    retries, and the fixed per-request timeout. Its configuration is not
    changed after construction, so concurrent probes can share it.

    Example:
        with ProbeClient(timeout=0.5) as client:
            result = client.probe(endpoint)
    """

    def __init__(
        self,
        timeout: float,
        pool_size: int = DEFAULT_POOL_SIZE,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        """Initialize the client.

        Args:
            timeout: Seconds allowed for a single probe round trip.
            pool_size: Connections kept per host; should cover the endpoint count.
            user_agent: Default User-Agent, overridden by endpoint headers.
        """
        if timeout <= 0:
            raise ValueError(f"Probe timeout must be positive (got {timeout})")

        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers["User-Agent"] = user_agent

        adapter = HTTPAdapter(pool_connections=pool_size, pool_maxsize=pool_size, max_retries=0)
        self._session.mount("http://", adapter)
        self._session.mount("https://", adapter)

    @property
    def timeout(self) -> float:
        return self._timeout

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "ProbeClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def probe(
        self,
        endpoint: Endpoint,
        deadline: float | None = None,
        cancel: Event | None = None,
    ) -> ProbeResult:
        """Send exactly one request to ``endpoint`` and classify the outcome.

        Args:
            endpoint: Endpoint to probe.
            deadline: Optional ``time.monotonic()`` instant the probe must not outlive.
            cancel: Optional event; once set, the request is not sent.

        Returns:
            ProbeResult. Timeouts and non-2xx responses are DOWN without an error;
            construction and other transport failures are UNDEFINED with the error.
        """
        try:
            request = requests.Request(
                method=endpoint.method or "GET",
                url=endpoint.url,
                headers=dict(endpoint.headers),
                data=endpoint.body.encode("utf-8") if endpoint.body else None,
            )
            prepared = self._session.prepare_request(request)
        except (requests.RequestException, ValueError) as e:
            return ProbeResult(endpoint, ProbeStatus.UNDEFINED, e)

        timeout = self._timeout
        if deadline is not None:
            timeout = min(timeout, deadline - time.monotonic())
        if timeout <= 0 or (cancel is not None and cancel.is_set()):
            logger.debug("%s: deadline reached before the request was sent", endpoint.url)
            return ProbeResult(endpoint, ProbeStatus.DOWN)

        try:
            # stream=True: only the status line and headers are awaited
            settings = self._session.merge_environment_settings(prepared.url, {}, True, None, None)
            response = self._session.send(prepared, timeout=timeout, **settings)
        except requests.Timeout:
            return ProbeResult(endpoint, ProbeStatus.DOWN)
        except (requests.RequestException, ValueError) as e:
            return ProbeResult(endpoint, ProbeStatus.UNDEFINED, e)

        # The body is never read; closing releases the connection.
        with response:
            status_code = response.status_code

        # Timeouts apply per socket operation, so a response can still land late.
        if deadline is not None and time.monotonic() > deadline:
            logger.debug("%s: response arrived after the deadline", endpoint.url)
            return ProbeResult(endpoint, ProbeStatus.DOWN)

        if _is_success_status(status_code):
            return ProbeResult(endpoint, ProbeStatus.UP)
        return ProbeResult(endpoint, ProbeStatus.DOWN)
