"""
Centralized settings and path configuration for the media pricing backend.
"""
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    project_root: Path

    # Rule store
    database_url: str

    # Listing sources
    data_dir: Path
    publications_file: Path
    television_file: Path
    broadcast_television_file: Path

    log_level: str = "INFO"

    # Factor that always exists and cannot be deleted
    default_factor_id: int = 1

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings from the environment and the project structure."""
        root = project_root or get_project_root()

        database_url = os.environ.get(
            'MEDIA_PRICING_DATABASE_URL',
            f"sqlite:///{root / 'media_pricing.db'}",
        )
        data_dir = Path(os.environ.get('MEDIA_PRICING_DATA_DIR', root / 'data'))

        return cls(
            project_root=root,
            database_url=database_url,
            data_dir=data_dir,
            publications_file=data_dir / 'data.json',
            television_file=data_dir / 'data1.csv',
            broadcast_television_file=data_dir / 'data2.csv',
            log_level=os.environ.get('MEDIA_PRICING_LOG_LEVEL', 'INFO').upper(),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings
