"""Query translation models."""

from __future__ import annotations

from pydantic import BaseModel

ALL_TARGETS = "all"


class ConversionResult(BaseModel):
    platform: str
    query: str
