"""
Site config resolution and update: defaults, idempotent creation, isolation,
whitelisting, and recovery from concurrent first-touch.
"""

import asyncio
from datetime import UTC, datetime

import pytest

from core.results import ConfigFailure, Err, Ok
from models.site_config import CONFIG_DEFAULTS
from services.site_config_service import SiteConfigService
from store.errors import DuplicateRecordError, StoreError
from store.memory import InMemoryStore
from tests.conftest import USER_A, USER_B, RecordingStore


async def test_new_site_resolves_to_defaults(service: SiteConfigService) -> None:
    result = await service.resolve_config("demo-site", USER_A)
    assert isinstance(result, Ok)
    assert result.value.site_id == "demo-site"
    assert result.value.config == CONFIG_DEFAULTS


async def test_resolve_is_idempotent(service: SiteConfigService, store: RecordingStore) -> None:
    first = await service.resolve_config("demo-site", USER_A)
    second = await service.resolve_config("demo-site", USER_A)
    assert isinstance(first, Ok) and isinstance(second, Ok)
    assert first.value == second.value
    assert len(store._sites) == 1
    assert len(store._configs) == 1
    assert store.calls.count("insert_site") == 1


async def test_same_site_id_is_isolated_per_caller(service: SiteConfigService, store: RecordingStore) -> None:
    await service.resolve_config("shared", USER_A)
    await service.resolve_config("shared", USER_B)
    assert store._sites[("shared", USER_A)]["id"] != store._sites[("shared", USER_B)]["id"]

    updated = await service.update_config("shared", USER_A, {"cursor_speed": 42})
    assert isinstance(updated, Ok)

    other = await service.resolve_config("shared", USER_B)
    assert isinstance(other, Ok)
    assert other.value.config["cursor_speed"] == CONFIG_DEFAULTS["cursor_speed"]


async def test_update_round_trip_drops_unknown_fields(service: SiteConfigService, store: RecordingStore) -> None:
    await service.resolve_config("demo-site", USER_A)
    result = await service.update_config(
        "demo-site", USER_A, {"cursor_speed": 15, "scroll_speed": 20, "unsupported_field": "x"}
    )
    assert isinstance(result, Ok)
    assert result.value.config["cursor_speed"] == 15
    assert result.value.config["scroll_speed"] == 20
    assert "unsupported_field" not in result.value.config

    resolved = await service.resolve_config("demo-site", USER_A)
    assert isinstance(resolved, Ok)
    expected = {**CONFIG_DEFAULTS, "cursor_speed": 15, "scroll_speed": 20}
    assert resolved.value.config == expected

    site_key = store._sites[("demo-site", USER_A)]["id"]
    assert "unsupported_field" not in store._configs[site_key]


async def test_update_cannot_touch_control_fields(service: SiteConfigService, store: RecordingStore) -> None:
    await service.resolve_config("demo-site", USER_A)
    site_key = store._sites[("demo-site", USER_A)]["id"]
    before = dict(store._configs[site_key])

    await service.update_config(
        "demo-site", USER_A, {"site_id": "hijack", "id": "x", "created_at": "1970-01-01", "exit_hold_ms": 900}
    )

    row = store._configs[site_key]
    assert row["site_id"] == site_key
    assert row["id"] == before["id"]
    assert row["created_at"] == before["created_at"]
    assert row["exit_hold_ms"] == 900


async def test_update_sets_updated_at(store: RecordingStore) -> None:
    stamp = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
    service = SiteConfigService(store, clock=lambda: stamp)
    await service.resolve_config("demo-site", USER_A)
    await service.update_config("demo-site", USER_A, {"cursor_mode_enabled": True})
    site_key = store._sites[("demo-site", USER_A)]["id"]
    assert store._configs[site_key]["updated_at"] == stamp
    assert store._configs[site_key]["cursor_mode_enabled"] is True


async def test_empty_update_does_not_touch_store(service: SiteConfigService, store: RecordingStore) -> None:
    result = await service.update_config("demo-site", USER_A, {})
    assert isinstance(result, Err)
    assert result.kind is ConfigFailure.EMPTY_UPDATE
    assert store.calls == []


async def test_update_unknown_site_is_not_found(service: SiteConfigService, store: RecordingStore) -> None:
    result = await service.update_config("never-resolved", USER_A, {"cursor_speed": 1})
    assert isinstance(result, Err)
    assert result.kind is ConfigFailure.SITE_NOT_FOUND
    assert "insert_site" not in store.calls


async def test_update_other_callers_site_looks_like_missing_site(service: SiteConfigService) -> None:
    await service.resolve_config("owned-by-a", USER_A)
    foreign = await service.update_config("owned-by-a", USER_B, {"cursor_speed": 1})
    missing = await service.update_config("does-not-exist", USER_B, {"cursor_speed": 1})
    assert isinstance(foreign, Err) and isinstance(missing, Err)
    assert foreign.kind is missing.kind is ConfigFailure.SITE_NOT_FOUND
    assert foreign.message == missing.message


async def test_unrecognised_fields_only_is_a_permissive_noop(service: SiteConfigService, store: RecordingStore) -> None:
    """Policy: a body with no known keys succeeds and changes nothing, unlike an empty body."""
    await service.resolve_config("demo-site", USER_A)
    result = await service.update_config("demo-site", USER_A, {"theme": "dark", "admin": True})
    assert isinstance(result, Ok)
    assert result.value.config == CONFIG_DEFAULTS
    assert "update_config" not in store.calls


async def test_values_are_stored_verbatim(service: SiteConfigService) -> None:
    await service.resolve_config("demo-site", USER_A)
    result = await service.update_config(
        "demo-site", USER_A, {"cursor_speed": -5, "accessibility_profile": "high_contrast", "click_cooldown_ms": 0}
    )
    assert isinstance(result, Ok)
    assert result.value.config["cursor_speed"] == -5
    assert result.value.config["accessibility_profile"] == "high_contrast"
    assert result.value.config["click_cooldown_ms"] == 0


async def test_partial_stored_row_is_normalized(service: SiteConfigService, store: RecordingStore) -> None:
    await service.resolve_config("demo-site", USER_A)
    site_key = store._sites[("demo-site", USER_A)]["id"]
    store._configs[site_key]["scroll_speed"] = None
    del store._configs[site_key]["enter_hold_ms"]

    result = await service.resolve_config("demo-site", USER_A)
    assert isinstance(result, Ok)
    assert result.value.config == CONFIG_DEFAULTS
    # defaults are filled on read only
    assert store._configs[site_key]["scroll_speed"] is None
    assert "enter_hold_ms" not in store._configs[site_key]


async def test_update_recreates_missing_config_row(service: SiteConfigService, store: RecordingStore) -> None:
    await service.resolve_config("demo-site", USER_A)
    site_key = store._sites[("demo-site", USER_A)]["id"]
    del store._configs[site_key]

    result = await service.update_config("demo-site", USER_A, {"cursor_speed": 12})
    assert isinstance(result, Ok)
    assert result.value.config == {**CONFIG_DEFAULTS, "cursor_speed": 12}


@pytest.mark.parametrize("site_id", ["", None, 123])
async def test_invalid_site_id(service: SiteConfigService, store: RecordingStore, site_id) -> None:
    result = await service.resolve_config(site_id, USER_A)
    assert isinstance(result, Err)
    assert result.kind is ConfigFailure.INVALID_REQUEST
    assert store.calls == []


async def test_missing_caller(service: SiteConfigService) -> None:
    result = await service.resolve_config("demo-site", "")
    assert isinstance(result, Err)
    assert result.kind is ConfigFailure.INVALID_REQUEST


async def test_non_mapping_updates(service: SiteConfigService) -> None:
    result = await service.update_config("demo-site", USER_A, ["cursor_speed"])
    assert isinstance(result, Err)
    assert result.kind is ConfigFailure.INVALID_REQUEST


@pytest.mark.parametrize("op", ["find_site", "find_config", "insert_config"])
async def test_storage_error_during_resolve(service: SiteConfigService, store: RecordingStore, storage_down, op) -> None:
    store.failures[op] = storage_down
    result = await service.resolve_config("demo-site", USER_A)
    assert isinstance(result, Err)
    assert result.kind is ConfigFailure.STORAGE_FAILURE
    assert result.cause is storage_down


async def test_storage_error_during_update(service: SiteConfigService, store: RecordingStore, storage_down) -> None:
    await service.resolve_config("demo-site", USER_A)
    store.failures["update_config"] = storage_down
    result = await service.update_config("demo-site", USER_A, {"cursor_speed": 3})
    assert isinstance(result, Err)
    assert result.kind is ConfigFailure.STORAGE_FAILURE
    assert store.calls.count("update_config") == 1


async def test_site_insert_failure_rechecks_once(service: SiteConfigService, store: RecordingStore, storage_down) -> None:
    store.failures["insert_site"] = storage_down
    result = await service.resolve_config("demo-site", USER_A)
    assert isinstance(result, Err)
    assert result.kind is ConfigFailure.STORAGE_FAILURE
    assert store.calls == ["find_site", "insert_site", "find_site"]


class LosingRaceStore(RecordingStore):
    """A concurrent request creates the site between our lookup and our insert."""

    async def insert_site(self, site_id: str, user_id: str):
        await InMemoryStore.insert_site(self, site_id, user_id)
        self.calls.append("insert_site")
        raise DuplicateRecordError("duplicate key value violates unique constraint", code="23505")


async def test_lost_site_creation_race_reads_winner() -> None:
    store = LosingRaceStore()
    service = SiteConfigService(store)
    result = await service.resolve_config("demo-site", USER_A)
    assert isinstance(result, Ok)
    assert result.value.config == CONFIG_DEFAULTS
    assert store.calls[:3] == ["find_site", "insert_site", "find_site"]
    assert len(store._sites) == 1


async def test_concurrent_first_touch_converges() -> None:
    store = RecordingStore()
    service = SiteConfigService(store)

    results = await asyncio.gather(*(service.resolve_config("burst-site", USER_A) for _ in range(10)))

    assert all(isinstance(r, Ok) for r in results)
    assert all(r.value.config == CONFIG_DEFAULTS for r in results)
    assert len(store._sites) == 1
    assert len(store._configs) == 1
    assert store.calls.count("insert_site") > 1


async def test_store_error_detail_stays_in_cause(service: SiteConfigService, store: RecordingStore) -> None:
    store.failures["find_site"] = StoreError("boom")
    result = await service.update_config("demo-site", USER_A, {"cursor_speed": 1})
    assert isinstance(result, Err)
    assert result.kind is ConfigFailure.STORAGE_FAILURE
    assert "boom" not in result.message
    assert str(result.cause) == "boom"
