"""Factory helpers for choosing an environmental data source at startup."""

from __future__ import annotations

from agrisat import config
from agrisat.data_sources.base import DataSource
from agrisat.data_sources.nasa_client import NasaPowerClient
from agrisat.data_sources.synthetic import SyntheticDataGenerator
from utils.logging_utils import get_tagged_logger, mask_secrets

logger = get_tagged_logger(__name__, tag="data_sources/factory")


DEFAULT_SOURCE_NAME = "nasa"


def build_data_source(settings: config.Settings | None = None) -> DataSource:
    """Instantiate the configured environmental data source."""
    settings = settings or config.settings
    source = (settings.data_source or DEFAULT_SOURCE_NAME).lower()

    if source == "nasa":
        logger.info("Using NASA data source", extra={"base_url": mask_secrets(settings.api_base_url)})
        return NasaPowerClient(
            settings.api_base_url,
            settings.api_key,
            timeout_seconds=settings.request_timeout_seconds,
            user_agent=settings.user_agent,
        )

    if source == "synthetic":
        logger.info("Using synthetic data source")
        return SyntheticDataGenerator(settings.endpoints)

    raise ValueError(f"Unknown data source '{source}'")
