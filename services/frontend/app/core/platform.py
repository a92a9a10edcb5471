"""Frontend — deployment platform detection.

The environment label comes from ``ENV_PLATFORM`` unless a lookup of the GCP
metadata server succeeds, in which case the label is ``gcp`` whatever the
configuration says. A redeployed binary therefore picks up the managed
platform without reconfiguration.
"""

from __future__ import annotations

import socket
from collections.abc import Callable, Collection
from concurrent import futures
from dataclasses import dataclass

import structlog

logger = structlog.get_logger()

LOCAL = "local"
GCP = "gcp"
VALID_ENVIRONMENTS: frozenset[str] = frozenset({LOCAL, GCP})
METADATA_HOST = "metadata.google.internal."
UNKNOWN_HOSTNAME = "unknown"

Probe = Callable[[], bool]


@dataclass(frozen=True)
class PlatformProfile:
    """Display parameters for the platform the frontend runs on."""

    display_class: str
    provider_name: str


def build_profile(label: str) -> PlatformProfile:
    if label == GCP:
        return PlatformProfile(display_class="gcp-platform", provider_name="Google Cloud")
    return PlatformProfile(display_class=LOCAL, provider_name=LOCAL)


def probe_metadata_server(host: str = METADATA_HOST, timeout: float = 1.0) -> bool:
    """Return True if ``host`` resolves within ``timeout`` seconds.

    A successful lookup is enough, whatever the number of addresses returned.
    Resolution runs on a worker thread because ``getaddrinfo`` has no timeout
    of its own; a lookup that outlives ``timeout`` is abandoned.
    """
    executor = futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix="metadata-probe")
    try:
        future = executor.submit(socket.getaddrinfo, host, None)
        addresses = future.result(timeout=timeout)
    except (OSError, UnicodeError, futures.TimeoutError) as exc:
        logger.debug("metadata_server_not_found", host=host, error=repr(exc))
        return False
    finally:
        executor.shutdown(wait=False)

    logger.debug(
        "metadata_server_detected",
        host=host,
        addresses=sorted({info[4][0] for info in addresses}),
    )
    return True


def detect_environment(
    explicit_value: str | None,
    probe: Probe,
    *,
    valid_envs: Collection[str] = VALID_ENVIRONMENTS,
    default: str = LOCAL,
) -> str:
    """Resolve the environment label from configuration and the probe.

    Args:
        explicit_value: The configured value (``ENV_PLATFORM``).
        probe: Returns True when running on GCP; a successful probe wins
            over ``explicit_value``.
        valid_envs: Recognized labels; anything else counts as unset.
        default: Label used when the configured value is unset or invalid.

    Returns:
        The lowercase environment label.
    """
    env = (explicit_value or "").lower()
    if not env or env not in valid_envs:
        logger.info("env platform is either empty or invalid", value=explicit_value)
        env = default

    try:
        detected = probe()
    except Exception as exc:
        logger.warning("platform_probe_failed", error=repr(exc))
        detected = False

    if detected:
        logger.debug("Detected Google metadata server, setting ENV_PLATFORM to GCP.")
        env = GCP

    logger.debug("ENV_PLATFORM", platform=env)
    return env.lower()


def resolve_hostname() -> str:
    """Best-effort system hostname, ``unknown`` when unavailable."""
    try:
        hostname = socket.gethostname()
    except OSError:
        hostname = ""
    if not hostname:
        logger.debug('cannot get hostname for frontend: using "unknown"')
        return UNKNOWN_HOSTNAME
    return hostname
