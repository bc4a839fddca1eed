"""Batch API key addition with independent success/failure counts."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from result import Err, Ok, Result

from assetmap.data.protocols import BackendError
from assetmap.models.keys import BatchOutcome
from assetmap.models.platforms import Platform, parse_platform

if TYPE_CHECKING:
    from assetmap.data.protocols import BackendProtocol

logger = logging.getLogger(__name__)


def split_keys(text: str) -> list[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]


class KeyService:
    def __init__(self, backend: BackendProtocol) -> None:
        self._backend = backend

    async def add_batch(
        self, platform: str | Platform, batch_text: str, email: str | None = None
    ) -> Result[BatchOutcome, str]:
        """Add every non-blank line as a key; a failing key never aborts the batch."""
        platform = parse_platform(platform)
        keys = split_keys(batch_text)
        if not keys:
            return Err("Enter at least one API key")
        if platform is Platform.FOFA and not email:
            return Err("FOFA keys require an email")

        outcome = BatchOutcome()
        for key in keys:
            try:
                await self._backend.add_api_key(platform, key, email)
            except BackendError as exc:
                logger.warning("Adding %s key failed: %s", platform, exc.message)
                outcome.failed += 1
                outcome.errors.append(exc.message)
            except Exception as exc:
                logger.warning("Adding %s key failed: %s", platform, exc)
                outcome.failed += 1
                outcome.errors.append(str(exc))
            else:
                outcome.succeeded += 1
        return Ok(outcome)
