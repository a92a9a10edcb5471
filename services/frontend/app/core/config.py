"""Frontend — environment-based configuration."""

from __future__ import annotations

import pathlib

from shared.config import BaseServiceSettings

_SERVICE_ROOT = pathlib.Path(__file__).resolve().parent.parent.parent


class FrontendSettings(BaseServiceSettings):
    """Settings specific to the storefront frontend."""

    service_name: str = "frontend"
    service_port: int = 8080
    bind_host: str = "0.0.0.0"

    # Deployment platform (ENV_PLATFORM): "local" or "gcp"
    env_platform: str = ""
    platform_probe_enabled: bool = True
    metadata_host: str = "metadata.google.internal."
    metadata_probe_timeout: float = 1.0

    # Downstream service URLs (resolved via the cluster network)
    catalog_service_url: str = "http://productcatalogservice:3550"
    currency_service_url: str = "http://currencyservice:7000"
    cart_service_url: str = "http://cartservice:7070"
    recommendation_service_url: str = "http://recommendationservice:8080"
    checkout_service_url: str = "http://checkoutservice:5050"
    shipping_service_url: str = "http://shippingservice:50051"
    ad_service_url: str = "http://adservice:9555"
    downstream_timeout: float = 10.0

    # Cookies
    cookie_prefix: str = "shop_"
    cookie_max_age: int = 60 * 60 * 48
    single_shared_session: bool = False
    default_currency: str = "USD"

    static_dir: pathlib.Path = _SERVICE_ROOT / "static"
    templates_dir: pathlib.Path = _SERVICE_ROOT / "templates"

    # Prometheus exposition port for per-route metrics; disabled when unset
    metrics_port: int | None = None

    @property
    def bind_address(self) -> str:
        return f"{self.bind_host}:{self.service_port}"


settings = FrontendSettings()
