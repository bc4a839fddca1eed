"""Persisted application settings."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from assetmap.models.platforms import Platform
from assetmap.models.search import DEFAULT_PAGE_SIZE


class ThemeMode(StrEnum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


class Language(StrEnum):
    ZH_CN = "zh_CN"
    EN_US = "en_US"


class AppSettings(BaseModel):
    """User-editable settings."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    export_path: str = ""
    default_platform: Platform = Platform.HUNTER
    page_size: int = DEFAULT_PAGE_SIZE
    auto_validate_api_keys: bool = False
    theme: ThemeMode = ThemeMode.DARK
    language: Language = Language.ZH_CN
