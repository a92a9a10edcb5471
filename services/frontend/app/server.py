"""Frontend — server construction and lifecycle.

``new_server`` does all startup work synchronously (dependency resolution,
platform detection, hostname lookup, asset mount) before any listener exists;
any failure raises a ``StartupError`` and no server is returned.
``FrontendServer.run`` then binds the listener and serves until stopped.
"""

from __future__ import annotations

import asyncio
import functools
import socket
from collections.abc import Sequence

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.templating import Jinja2Templates
from opentelemetry.trace import TracerProvider

from app.core.assets import AssetProvider, DirectoryAssets
from app.core.config import FrontendSettings
from app.core.config import settings as default_settings
from app.core.errors import FrontendError, ListenerError, StartupError
from app.core.events import ShutdownHook, build_lifespan
from app.core.instrumentation import HandlerMetrics
from app.core.middleware import build_handler
from app.core.platform import (
    PlatformProfile,
    Probe,
    build_profile,
    detect_environment,
    probe_metadata_server,
    resolve_hostname,
)
from app.core.session import CookieSettings
from app.routers.routes import build_routes, mount_routes
from app.routers.storefront import StorefrontHandlers
from app.services.registry import (
    HttpServiceLocator,
    ServiceHandles,
    ServiceLocator,
    resolve_services,
)

logger = structlog.get_logger()

_PENDING_RELEASES: set[asyncio.Task[None]] = set()


class FrontendServer:
    """The storefront frontend: resolved state plus the composed ASGI app."""

    def __init__(
        self,
        *,
        services: ServiceHandles,
        platform: PlatformProfile,
        hostname: str,
        assets: AssetProvider,
        settings: FrontendSettings,
        metrics: HandlerMetrics | None = None,
        tracer_provider: TracerProvider | None = None,
        on_shutdown: Sequence[ShutdownHook] = (),
    ) -> None:
        self.services = services
        self.platform = platform
        self.hostname = hostname
        self.settings = settings
        self.metrics = metrics or HandlerMetrics()
        self.cookies = CookieSettings(
            prefix=settings.cookie_prefix,
            max_age=settings.cookie_max_age,
            single_shared_session=settings.single_shared_session,
        )
        self.handlers = StorefrontHandlers(
            services=services,
            platform=platform,
            hostname=hostname,
            cookies=self.cookies,
            templates=Jinja2Templates(directory=str(settings.templates_dir)),
            assets=assets,
            default_currency=settings.default_currency,
        )
        self.routes = tuple(build_routes(self.handlers))

        app = FastAPI(
            title="Online Boutique Frontend",
            version="0.1.0",
            docs_url=None,
            redoc_url=None,
            openapi_url=None,
            lifespan=build_lifespan(
                platform=platform.provider_name,
                hostname=hostname,
                on_shutdown=on_shutdown,
            ),
        )
        app.state.metrics = self.metrics
        mount_routes(app.router, self.routes)
        app.add_exception_handler(FrontendError, self.handlers.render_error)
        self.app = build_handler(app, cookies=self.cookies, tracer_provider=tracer_provider)

    def run(self, bind_address: str) -> None:
        """Bind ``bind_address`` (``host:port``) and serve until stopped.

        Raises:
            ListenerError: if the address cannot be bound.
            StartupError: if the server fails to start serving.
        """
        host, port = _split_address(bind_address)
        try:
            listener = socket.create_server((host, port))
        except OSError as exc:
            raise ListenerError(f"cannot listen on {bind_address}: {exc}") from exc

        logger.info("Frontend available", addr=listener.getsockname())
        if self.settings.metrics_port:
            self.metrics.serve(self.settings.metrics_port)

        config = uvicorn.Config(self.app, log_config=None, access_log=False)
        server = uvicorn.Server(config)
        try:
            server.run(sockets=[listener])
        finally:
            listener.close()
        if not server.started:
            raise StartupError(f"frontend failed to serve on {bind_address}")


def _split_address(bind_address: str) -> tuple[str, int]:
    host, sep, port = bind_address.rpartition(":")
    if not sep:
        raise ListenerError(f"bind address {bind_address!r} is not host:port")
    try:
        return host.strip("[]"), int(port)
    except ValueError as exc:
        raise ListenerError(f"bind address {bind_address!r} has an invalid port") from exc


def _no_probe() -> bool:
    return False


def _release(hooks: Sequence[ShutdownHook]) -> None:
    """Run shutdown hooks for a construction that never produced a server."""
    if not hooks:
        return

    async def run_all() -> None:
        for hook in hooks:
            await hook()

    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        asyncio.run(run_all())
    else:
        # Constructed from inside a running loop (app factory mode)
        task = loop.create_task(run_all())
        _PENDING_RELEASES.add(task)
        task.add_done_callback(_PENDING_RELEASES.discard)


def new_server(
    settings: FrontendSettings | None = None,
    *,
    locator: ServiceLocator | None = None,
    probe: Probe | None = None,
    assets: AssetProvider | None = None,
    metrics: HandlerMetrics | None = None,
    tracer_provider: TracerProvider | None = None,
) -> FrontendServer:
    """Resolve dependencies and environment, then build the server.

    Raises:
        DependencyResolutionError: if any downstream service cannot be resolved.
        AssetMountError: if the static asset directory cannot be mounted.
    """
    settings = settings or default_settings
    on_shutdown: list[ShutdownHook] = []
    if locator is None:
        http_locator = HttpServiceLocator(settings)
        on_shutdown.append(http_locator.aclose)
        locator = http_locator

    try:
        services = resolve_services(locator)

        if probe is None:
            probe = (
                functools.partial(
                    probe_metadata_server,
                    settings.metadata_host,
                    settings.metadata_probe_timeout,
                )
                if settings.platform_probe_enabled
                else _no_probe
            )
        platform = build_profile(detect_environment(settings.env_platform, probe))
        hostname = resolve_hostname()

        if assets is None:
            assets = DirectoryAssets(settings.static_dir)
    except StartupError:
        _release(on_shutdown)
        raise

    return FrontendServer(
        services=services,
        platform=platform,
        hostname=hostname,
        assets=assets,
        settings=settings,
        metrics=metrics,
        tracer_provider=tracer_provider,
        on_shutdown=on_shutdown,
    )
