"""Configuration for assetmap."""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class Config:
    """Application configuration."""

    data_dir: Path = field(default_factory=lambda: Path.home() / ".config" / "assetmap")
    export_dir: Path = field(default_factory=lambda: Path.home() / "assetmap-exports")
    history_limit: int = 1000
    page_retries: int = 3
    retry_delay_s: float = 5.0
    page_delay_s: float = 2.0
    auto_dismiss_s: float = 3.0

    @property
    def db_path(self) -> Path:
        return self.data_dir / "assetmap.db"
