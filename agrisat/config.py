"""Application configuration pulled from environment variables via pydantic."""
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="config")


class Settings(BaseSettings):
    """Environment-driven configuration for the agrisat feedback service."""
    model_config = SettingsConfigDict(env_prefix="AGRISAT_", extra="ignore")

    data_source: str = "nasa"  # options: nasa, synthetic
    api_base_url: str = "https://api.nasa.gov"
    api_key: str = "DEMO_KEY"
    endpoints: dict[str, str] = Field(
        default_factory=lambda: {
            "earth": "/planetary/earth/imagery",
            "power": "/power/api/temporal/daily/point",
            "apod": "/planetary/apod",
        }
    )
    probe_endpoint: str = "apod"  # key into `endpoints`
    rate_limit_ms: int = Field(default=1000, gt=0)
    request_timeout_ms: int = Field(default=10000, gt=0)
    cache_ttl_ms: int = Field(default=300000, gt=0)
    probe_on_start: bool = True
    user_agent: str = "agrisat-feedback/1.0"
    strict_snapshots: bool = False
    log_level: str = "INFO"

    @field_validator("api_base_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs to avoid double slashes."""
        return str(v).rstrip("/")

    @field_validator("endpoints", mode="after")
    @classmethod
    def require_core_endpoints(cls, v: dict[str, str]) -> dict[str, str]:
        """The imagery and measurement endpoints are needed by the synthetic fallback."""
        missing = {"earth", "power"} - set(v)
        if missing:
            raise ValueError(f"endpoints is missing required keys: {sorted(missing)}")
        return v

    @property
    def rate_limit_seconds(self) -> float:
        return self.rate_limit_ms / 1000.0

    @property
    def request_timeout_seconds(self) -> float:
        return self.request_timeout_ms / 1000.0

    @property
    def cache_ttl_seconds(self) -> float:
        return self.cache_ttl_ms / 1000.0

    @property
    def probe_path(self) -> str:
        """Resolve the probe endpoint key to a path, accepting raw paths too."""
        return self.endpoints.get(self.probe_endpoint, self.probe_endpoint)


settings = Settings()


if __name__ == "__main__":
    logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {settings.model_dump_json(indent=4, exclude={'api_key'})}")
