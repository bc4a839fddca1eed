"""Query translation facade over the backend's validate/convert commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

from result import Err, Ok, Result

from assetmap.data.protocols import BackendError
from assetmap.models import dialects
from assetmap.models.conversion import ALL_TARGETS, ConversionResult

if TYPE_CHECKING:
    from assetmap.data.protocols import BackendProtocol


class QueryTranslationFacade:
    """Typed pass-through to the external translation engine.

    Owns only the workflow choice (one target or all targets) and the
    example catalogue used to seed the input field.
    """

    def __init__(self, backend: BackendProtocol) -> None:
        self._backend = backend

    async def supported_platforms(self) -> Result[list[str], str]:
        try:
            return Ok(await self._backend.get_supported_platforms())
        except BackendError as exc:
            return Err(f"Failed to load platforms: {exc.message}")
        except Exception as exc:
            return Err(f"Failed to load platforms: {exc}")

    async def validate(self, query: str, platform: str) -> Result[None, str]:
        query = query.strip()
        if not query:
            return Err("Query cannot be empty")
        try:
            await self._backend.validate_query_syntax(query, platform)
        except BackendError as exc:
            return Err(exc.message)
        except Exception as exc:
            return Err(f"Validation failed: {exc}")
        return Ok(None)

    async def convert(
        self, query: str, source: str, target: str = ALL_TARGETS
    ) -> Result[list[ConversionResult], str]:
        """Convert to one named platform, or to every other platform for ``"all"``."""
        query = query.strip()
        if not query:
            return Err("Query cannot be empty")
        if not target:
            return Err("Select a target platform")
        try:
            if target == ALL_TARGETS:
                return Ok(await self._backend.convert_query_to_all(query, source))
            converted = await self._backend.convert_query(query, source, target)
        except BackendError as exc:
            return Err(f"Conversion failed: {exc.message}")
        except Exception as exc:
            return Err(f"Conversion failed: {exc}")
        return Ok([ConversionResult(platform=target, query=converted)])

    @staticmethod
    def examples_for(platform: str) -> tuple[str, ...]:
        return dialects.examples_for(platform)

    @classmethod
    def example(cls, platform: str, index: int) -> str | None:
        examples = cls.examples_for(platform)
        if 0 <= index < len(examples):
            return examples[index]
        return None
