"""Settings management - loads from .env and views.yaml."""

from dataclasses import dataclass, field
from pathlib import Path

import yaml
from dotenv import load_dotenv
import os


@dataclass
class ViewOverride:
    """Per-view overrides for a listing view."""

    name: str
    page_size: int | None = None
    default_sort: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "ViewOverride":
        page_size = data.get("page_size")
        return cls(
            name=data["name"],
            page_size=int(page_size) if page_size is not None else None,
            default_sort=data.get("default_sort"),
        )


@dataclass
class Settings:
    """Application settings loaded from environment and config files."""

    # Remote API
    api_base_url: str
    request_timeout: float

    # Query cache (seconds)
    stale_time: float
    cache_time: float
    cache_prune_interval: int

    # Retry policy
    max_retries: int
    retry_delay: float

    # Booking
    service_fee_rate: float

    # Local store
    store_path: str

    # Server
    host: str
    port: int

    # Listing view overrides
    views: list[ViewOverride] = field(default_factory=list)

    @classmethod
    def load(cls, env_path: str | None = None, views_path: str | None = None) -> "Settings":
        """Load settings from .env file and views.yaml."""
        if env_path:
            load_dotenv(env_path)
        else:
            load_dotenv()

        views = []
        views_file = Path(views_path) if views_path else Path("config/views.yaml")
        if views_file.exists():
            with open(views_file) as f:
                views_data = yaml.safe_load(f)
                if views_data and "views" in views_data:
                    views = [ViewOverride.from_dict(v) for v in views_data["views"]]

        return cls(
            api_base_url=os.getenv("SPHERESTAY_API_BASE_URL", "http://localhost:3000"),
            request_timeout=float(os.getenv("REQUEST_TIMEOUT", "10")),
            stale_time=float(os.getenv("STALE_TIME", "300")),
            cache_time=float(os.getenv("CACHE_TIME", "600")),
            cache_prune_interval=int(os.getenv("CACHE_PRUNE_INTERVAL", "60")),
            max_retries=int(os.getenv("MAX_RETRIES", "3")),
            retry_delay=float(os.getenv("RETRY_DELAY", "1.0")),
            service_fee_rate=float(os.getenv("SERVICE_FEE_RATE", "0.14")),
            store_path=os.getenv("STORE_PATH", "spherestay.db"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            views=views,
        )

    def get_view(self, name: str) -> ViewOverride | None:
        """Get a view override by name (case-insensitive)."""
        name_lower = name.lower()
        for view in self.views:
            if view.name.lower() == name_lower:
                return view
        return None

    def validate(self) -> list[str]:
        """Validate settings and return list of errors."""
        errors = []
        if not self.api_base_url.startswith(("http://", "https://")):
            errors.append("SPHERESTAY_API_BASE_URL must be an http(s) URL")
        if self.stale_time > self.cache_time:
            errors.append("STALE_TIME should not exceed CACHE_TIME")
        if self.max_retries < 0:
            errors.append("MAX_RETRIES cannot be negative")
        if not 0 <= self.service_fee_rate < 1:
            errors.append("SERVICE_FEE_RATE must be between 0 and 1")
        for view in self.views:
            if view.page_size is not None and view.page_size < 1:
                errors.append(f"View '{view.name}' page_size must be at least 1")
        return errors
