"""Frontend — exception types.

``StartupError`` subclasses abort server construction or startup and reach
the process entry point. ``FrontendError`` subclasses are raised while
handling a request and are rendered as the error page.
"""

from __future__ import annotations


class StartupError(Exception):
    """Fatal error while constructing or starting the frontend."""


class DependencyResolutionError(StartupError):
    """A downstream service handle could not be resolved."""

    def __init__(self, service: str, reason: str = "") -> None:
        self.service = service
        self.reason = reason
        message = f"cannot resolve {service} service"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class AssetMountError(StartupError):
    """The static asset collection could not be mounted."""


class ListenerError(StartupError):
    """The listener could not be bound to the requested address."""


class FrontendError(Exception):
    """Per-request failure rendered as a user-facing error page."""

    status_code = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ServiceCallError(FrontendError):
    """A downstream service call failed."""

    def __init__(self, service: str, detail: str) -> None:
        self.service = service
        self.detail = detail
        super().__init__(f"{service} service call failed: {detail}")


class InvalidFormError(FrontendError):
    """Submitted form data did not validate."""

    status_code = 422
