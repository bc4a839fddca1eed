"""API key batch models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class BatchOutcome(BaseModel):
    """Aggregate result of a batch key addition."""

    succeeded: int = 0
    failed: int = 0
    errors: list[str] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return self.succeeded + self.failed

    @property
    def all_succeeded(self) -> bool:
        return self.failed == 0
