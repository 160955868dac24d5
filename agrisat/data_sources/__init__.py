"""Data source implementations for the environmental request contract."""

from .base import CallableDataSource, DataSource
from .factory import build_data_source
from .nasa_client import POWER_FILL_VALUE, NasaPowerClient, warn_on_unexpected_units
from .synthetic import SyntheticDataGenerator, is_synthetic, temperature_bounds

__all__ = [
    "build_data_source",
    "DataSource",
    "CallableDataSource",
    "NasaPowerClient",
    "POWER_FILL_VALUE",
    "warn_on_unexpected_units",
    "SyntheticDataGenerator",
    "is_synthetic",
    "temperature_bounds",
]
