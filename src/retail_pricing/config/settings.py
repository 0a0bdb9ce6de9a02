"""
Centralized settings and logging configuration for the retail pricing tool.
"""
import logging
import os
from pathlib import Path
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

ENV_PREFIX = "RETAIL_PRICING_"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to the directory holding src/ (config -> retail_pricing -> src -> root)
    return current.parents[3]


def _env(name: str, default: str) -> str:
    return os.environ.get(f"{ENV_PREFIX}{name}", default)


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Project paths
    project_root: Path

    # Output directory for priced catalogs and reports
    export_dir: Path

    # Logging
    log_level: str = "INFO"

    # API server
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Price used for the rounding preview table
    rounding_example_price: Decimal = Decimal("24.67")

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings from the project structure and RETAIL_PRICING_* environment variables."""
        root = project_root or get_project_root()
        return cls(
            project_root=root,
            export_dir=Path(_env("EXPORT_DIR", str(root / 'exports'))),
            log_level=_env("LOG_LEVEL", "INFO").upper(),
            api_host=_env("API_HOST", "0.0.0.0"),
            api_port=int(_env("API_PORT", "8000")),
            rounding_example_price=Decimal(_env("ROUNDING_EXAMPLE_PRICE", "24.67")),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def configure_logging(level: Optional[str] = None):
    """Install a console handler for scripts and the API process."""
    level = (level or get_settings().log_level).upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
