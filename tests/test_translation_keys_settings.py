"""Tests for the translation facade, key batches and settings/theme services."""

from __future__ import annotations

from types import SimpleNamespace

import pytest
from result import Err, Ok

from assetmap.data.db import Database
from assetmap.data.protocols import BackendError
from assetmap.data.repositories import SettingsRepository
from assetmap.models.conversion import ALL_TARGETS, ConversionResult
from assetmap.models.keys import BatchOutcome
from assetmap.models.settings import AppSettings, Language, ThemeMode
from assetmap.services.container import ServiceContainer
from assetmap.services.keys import KeyService, split_keys
from assetmap.services.settings import SettingsService, ThemePreference
from assetmap.services.translation import QueryTranslationFacade

# ── Translation ──


@pytest.mark.asyncio
async def test_convert_to_single_target(fake_backend: SimpleNamespace) -> None:
    facade = QueryTranslationFacade(fake_backend)
    result = await facade.convert(' title="x" ', "fofa", "quake")
    assert result == Ok([ConversionResult(platform="quake", query='title:"x"')])
    fake_backend.convert_query.assert_awaited_once_with('title="x"', "fofa", "quake")


@pytest.mark.asyncio
async def test_convert_to_all_targets(fake_backend: SimpleNamespace) -> None:
    converted = [
        ConversionResult(platform="hunter", query='web.title="x"'),
        ConversionResult(platform="quake", query='title:"x"'),
    ]
    fake_backend.convert_query_to_all.return_value = converted
    facade = QueryTranslationFacade(fake_backend)

    result = await facade.convert('title="x"', "fofa", ALL_TARGETS)

    assert result == Ok(converted)
    fake_backend.convert_query.assert_not_awaited()


@pytest.mark.asyncio
async def test_convert_guards(fake_backend: SimpleNamespace) -> None:
    facade = QueryTranslationFacade(fake_backend)
    assert await facade.convert("   ", "fofa") == Err("Query cannot be empty")
    assert await facade.convert("x", "fofa", "") == Err("Select a target platform")
    fake_backend.convert_query_to_all.assert_not_awaited()


@pytest.mark.asyncio
async def test_convert_failure(fake_backend: SimpleNamespace) -> None:
    fake_backend.convert_query.side_effect = BackendError("unsupported operator")
    result = await QueryTranslationFacade(fake_backend).convert("x", "fofa", "hunter")
    assert result == Err("Conversion failed: unsupported operator")


@pytest.mark.asyncio
async def test_validate(fake_backend: SimpleNamespace) -> None:
    facade = QueryTranslationFacade(fake_backend)
    assert await facade.validate('port="80"', "fofa") == Ok(None)
    assert await facade.validate("", "fofa") == Err("Query cannot be empty")
    fake_backend.validate_query_syntax.side_effect = BackendError("unbalanced quotes")
    assert await facade.validate('port="80', "fofa") == Err("unbalanced quotes")


@pytest.mark.asyncio
async def test_supported_platforms(fake_backend: SimpleNamespace) -> None:
    facade = QueryTranslationFacade(fake_backend)
    assert await facade.supported_platforms() == Ok(["hunter", "fofa", "quake", "daydaymap"])


def test_examples() -> None:
    assert QueryTranslationFacade.example("quake", 0) == 'ip:"8.8.8.8"'
    assert QueryTranslationFacade.example("fofa", 99) is None
    assert QueryTranslationFacade.example("fofa", -1) is None
    assert QueryTranslationFacade.examples_for("hunter")


# ── Key batches ──


def test_split_keys_skips_blank_lines() -> None:
    assert split_keys("  k1 \n\n k2\n   \nk3") == ["k1", "k2", "k3"]


@pytest.mark.asyncio
async def test_add_batch_counts_independently(fake_backend: SimpleNamespace) -> None:
    fake_backend.add_api_key.side_effect = [None, BackendError("invalid key"), None]
    service = KeyService(fake_backend)

    result = await service.add_batch("hunter", "k1\nbad\nk3")

    assert result == Ok(BatchOutcome(succeeded=2, failed=1, errors=["invalid key"]))
    assert fake_backend.add_api_key.await_count == 3
    outcome = result.ok_value
    assert outcome.total == 3
    assert not outcome.all_succeeded


@pytest.mark.asyncio
async def test_add_batch_guards(fake_backend: SimpleNamespace) -> None:
    service = KeyService(fake_backend)
    assert await service.add_batch("quake", " \n ") == Err("Enter at least one API key")
    assert await service.add_batch("fofa", "k1") == Err("FOFA keys require an email")
    fake_backend.add_api_key.assert_not_awaited()


@pytest.mark.asyncio
async def test_add_batch_fofa_passes_email(fake_backend: SimpleNamespace) -> None:
    result = await KeyService(fake_backend).add_batch("fofa", "k1", email="me@example.com")
    assert isinstance(result, Ok)
    assert result.ok_value.all_succeeded
    fake_backend.add_api_key.assert_awaited_once_with("fofa", "k1", "me@example.com")


# ── Theme and settings ──


def test_theme_preference_notifies_on_change_only() -> None:
    theme = ThemePreference()
    seen: list[ThemeMode] = []
    dispose = theme.subscribe(seen.append)

    theme.set("dark")
    theme.set(ThemeMode.LIGHT)
    dispose()
    theme.set(ThemeMode.SYSTEM)

    assert seen == [ThemeMode.LIGHT]
    assert theme.get() is ThemeMode.SYSTEM


def test_theme_effective_resolves_system() -> None:
    theme = ThemePreference(ThemeMode.SYSTEM)
    assert theme.effective(system_dark=True) is ThemeMode.DARK
    assert theme.effective(system_dark=False) is ThemeMode.LIGHT
    assert ThemePreference(ThemeMode.LIGHT).effective(system_dark=True) is ThemeMode.LIGHT


def test_app_settings_aliases_and_defaults() -> None:
    settings = AppSettings.model_validate(
        {"exportPath": "/data", "defaultPlatform": "quake", "pageSize": 50, "theme": "light"}
    )
    assert settings.export_path == "/data"
    assert settings.default_platform == "quake"
    assert settings.language is Language.ZH_CN
    assert settings.auto_validate_api_keys is False
    assert settings.model_dump(by_alias=True)["autoValidateApiKeys"] is False


@pytest.mark.asyncio
async def test_settings_get_leaves_theme_alone(fake_backend: SimpleNamespace) -> None:
    fake_backend.get_settings.return_value = AppSettings(theme=ThemeMode.LIGHT)
    theme = ThemePreference(ThemeMode.SYSTEM)
    result = await SettingsService(fake_backend, theme).get()
    assert isinstance(result, Ok)
    assert result.ok_value.theme is ThemeMode.LIGHT
    assert theme.get() is ThemeMode.SYSTEM


@pytest.mark.asyncio
async def test_theme_toggle_persists_new_mode(fake_backend: SimpleNamespace) -> None:
    fake_backend.get_settings.return_value = AppSettings(theme=ThemeMode.DARK, page_size=50)
    theme = ThemePreference(ThemeMode.DARK)
    applied: list[ThemeMode] = []
    theme.subscribe(applied.append)
    service = SettingsService(fake_backend, theme)

    theme.set(ThemeMode.LIGHT)
    loaded = await service.get()
    assert isinstance(loaded, Ok)
    assert await service.save(loaded.ok_value) == Ok(None)

    assert applied == [ThemeMode.LIGHT]
    assert theme.get() is ThemeMode.LIGHT
    saved = fake_backend.save_settings.await_args.args[0]
    assert saved.theme is ThemeMode.LIGHT
    assert saved.page_size == 50


@pytest.mark.asyncio
async def test_settings_save_uses_current_theme(fake_backend: SimpleNamespace) -> None:
    theme = ThemePreference(ThemeMode.SYSTEM)
    service = SettingsService(fake_backend, theme)

    result = await service.save(AppSettings(theme=ThemeMode.DARK, page_size=100))

    assert result == Ok(None)
    saved = fake_backend.save_settings.await_args.args[0]
    assert saved.theme is ThemeMode.SYSTEM
    assert saved.page_size == 100


@pytest.mark.asyncio
async def test_settings_failures(fake_backend: SimpleNamespace) -> None:
    fake_backend.get_settings.side_effect = BackendError("corrupt")
    fake_backend.save_settings.side_effect = BackendError("disk full")
    service = SettingsService(fake_backend, ThemePreference())
    assert await service.get() == Err("Failed to load settings: corrupt")
    assert await service.save(AppSettings()) == Err("Failed to save settings: disk full")


@pytest.mark.asyncio
async def test_unexpected_exceptions_become_err(fake_backend: SimpleNamespace) -> None:
    fake_backend.get_settings.side_effect = ValueError("invalid JSON")
    fake_backend.save_settings.side_effect = RuntimeError("Database not connected")
    fake_backend.get_supported_platforms.side_effect = OSError("rules file missing")
    fake_backend.convert_query.side_effect = TypeError("bad input")
    fake_backend.add_api_key.side_effect = [RuntimeError("store locked"), None]

    settings = SettingsService(fake_backend, ThemePreference())
    assert await settings.get() == Err("Failed to load settings: invalid JSON")
    assert await settings.save(AppSettings()) == Err(
        "Failed to save settings: Database not connected"
    )

    facade = QueryTranslationFacade(fake_backend)
    assert await facade.supported_platforms() == Err("Failed to load platforms: rules file missing")
    assert await facade.convert("q", "fofa", "quake") == Err("Conversion failed: bad input")

    outcome = await KeyService(fake_backend).add_batch("hunter", "k1\nk2")
    assert outcome == Ok(BatchOutcome(succeeded=1, failed=1, errors=["store locked"]))


@pytest.mark.asyncio
async def test_container_seeds_theme_from_stored_settings(test_config) -> None:
    async with Database(test_config.db_path) as db:
        await SettingsRepository(db).save(AppSettings(theme=ThemeMode.LIGHT))

    services = await ServiceContainer.create(test_config)
    try:
        assert services.theme.get() is ThemeMode.LIGHT
        assert services.settings_service.theme is services.theme
    finally:
        await services.close()


@pytest.mark.asyncio
async def test_container_falls_back_to_default_theme(test_config) -> None:
    async with Database(test_config.db_path) as db:
        await db.execute(
            "INSERT INTO settings (key, value) VALUES (?, ?)",
            (SettingsRepository._KEY, "{not json"),
        )
        await db.commit()

    services = await ServiceContainer.create(test_config)
    try:
        assert services.theme.get() is ThemeMode.DARK
    finally:
        await services.close()
