"""Tests for the registration repository against SQLite."""

from __future__ import annotations

import logging

import pytest
from sqlalchemy import func, select

from udyam.config.settings import DatabaseConfig
from udyam.errors import ConflictError, PersistenceError
from udyam.storage.database import Database
from udyam.storage.models import Registration
from udyam.storage.registration_repository import RegistrationPage, RegistrationRepository


def _identity(i: int) -> tuple[str, str]:
    return f"{i:012d}", f"ABCDE{i:04d}F"


async def _count(database: Database) -> int:
    async with database.session() as session:
        return (await session.execute(select(func.count()).select_from(Registration))).scalar_one()


class TestInsert:
    @pytest.mark.asyncio
    async def test_insert_assigns_id_and_timestamps(self, database):
        repository = RegistrationRepository(database)
        payload = {"aadhaarNumber": "123456789012", "panNumber": "ABCDE1234F", "name": "Asha"}

        registration = await repository.insert("123456789012", "ABCDE1234F", payload)

        assert registration.id is not None
        assert registration.created_at is not None
        assert registration.updated_at == registration.created_at
        assert registration.payload == payload

    @pytest.mark.asyncio
    async def test_payload_round_trips_verbatim(self, database):
        repository = RegistrationRepository(database)
        payload = {
            "aadhaarNumber": "123456789012",
            "panNumber": "ABCDE1234F",
            "address": {"state": "Karnataka", "pin": "560001"},
            "activities": ["manufacturing"],
        }
        await repository.insert("123456789012", "ABCDE1234F", payload)

        page = await repository.list_page(1, 10)
        assert page.rows[0].payload == payload

    @pytest.mark.asyncio
    async def test_duplicate_pan_conflicts(self, database):
        repository = RegistrationRepository(database)
        await repository.insert("111111111111", "ABCDE1234F", {})

        with pytest.raises(ConflictError):
            await repository.insert("222222222222", "ABCDE1234F", {})
        assert await _count(database) == 1

    @pytest.mark.asyncio
    async def test_constraint_conflict_log_masks_pan(self, database, monkeypatch, caplog):
        repository = RegistrationRepository(database)
        await repository.insert("111111111111", "ABCDE1234F", {})

        async def _never_exists(self, session, aadhaar, pan):
            return False

        monkeypatch.setattr(RegistrationRepository, "_exists", _never_exists)

        with caplog.at_level(logging.INFO, logger="udyam.storage.registration_repository"):
            with pytest.raises(ConflictError):
                await repository.insert("222222222222", "ABCDE1234F", {})

        assert "ABCDE1234F" not in caplog.text
        assert "******234F" in caplog.text

    @pytest.mark.asyncio
    async def test_duplicate_aadhaar_conflicts(self, database):
        repository = RegistrationRepository(database)
        await repository.insert("111111111111", "ABCDE1234F", {})

        with pytest.raises(ConflictError):
            await repository.insert("111111111111", "ZZZZZ9999Z", {})

    @pytest.mark.asyncio
    async def test_unique_constraint_backs_up_the_precheck(self, database, monkeypatch):
        repository = RegistrationRepository(database)
        await repository.insert("111111111111", "ABCDE1234F", {})

        async def _never_exists(self, session, aadhaar, pan):
            return False

        monkeypatch.setattr(RegistrationRepository, "_exists", _never_exists)

        with pytest.raises(ConflictError):
            await repository.insert("222222222222", "ABCDE1234F", {})
        assert await _count(database) == 1

    @pytest.mark.asyncio
    async def test_missing_aadhaar_allowed_more_than_once(self, database):
        repository = RegistrationRepository(database)
        await repository.insert(None, "ABCDE1234F", {})
        await repository.insert(None, "FGHIJ5678K", {})
        assert await _count(database) == 2

    @pytest.mark.asyncio
    async def test_insert_before_connect_is_persistence_error(self, tmp_path):
        database = Database(DatabaseConfig(url=f"sqlite+aiosqlite:///{tmp_path / 'x.db'}"))
        repository = RegistrationRepository(database)

        with pytest.raises(PersistenceError):
            await repository.insert("123456789012", "ABCDE1234F", {})


class TestExistsByIdentity:
    @pytest.mark.asyncio
    async def test_either_identifier_matches(self, database):
        repository = RegistrationRepository(database)
        await repository.insert("111111111111", "ABCDE1234F", {})

        assert await repository.exists_by_identity("111111111111", "ZZZZZ9999Z")
        assert await repository.exists_by_identity("999999999999", "ABCDE1234F")
        assert not await repository.exists_by_identity("999999999999", "ZZZZZ9999Z")

    @pytest.mark.asyncio
    async def test_missing_aadhaar_only_matches_pan(self, database):
        repository = RegistrationRepository(database)
        await repository.insert(None, "ABCDE1234F", {})

        assert not await repository.exists_by_identity(None, "ZZZZZ9999Z")
        assert await repository.exists_by_identity(None, "ABCDE1234F")

    @pytest.mark.asyncio
    async def test_missing_table_is_persistence_error(self, database_config):
        database = Database(database_config)
        await database.connect()
        try:
            with pytest.raises(PersistenceError):
                await RegistrationRepository(database).exists_by_identity(None, "ABCDE1234F")
        finally:
            await database.dispose()


class TestListPage:
    @pytest.mark.asyncio
    async def test_pagination_over_fifteen_rows(self, database):
        repository = RegistrationRepository(database)
        for i in range(15):
            aadhaar, pan = _identity(i)
            await repository.insert(aadhaar, pan, {"panNumber": pan})

        first = await repository.list_page(1, 10)
        assert len(first.rows) == 10
        assert first.total == 15
        assert first.total_pages == 2
        assert first.has_next
        assert not first.has_prev
        assert first.rows[0].pan == _identity(14)[1]

        second = await repository.list_page(2, 10)
        assert len(second.rows) == 5
        assert not second.has_next
        assert second.has_prev
        assert second.rows[-1].pan == _identity(0)[1]

        seen = {row.id for row in first.rows} | {row.id for row in second.rows}
        assert len(seen) == 15

    @pytest.mark.asyncio
    async def test_page_past_the_end(self, database):
        repository = RegistrationRepository(database)
        await repository.insert(*_identity(1), {})

        page = await repository.list_page(3, 10)
        assert page.rows == []
        assert page.total == 1
        assert not page.has_next
        assert page.has_prev

    @pytest.mark.asyncio
    async def test_empty_table(self, database):
        page = await RegistrationRepository(database).list_page(1, 10)
        assert page.rows == []
        assert page.total_pages == 0
        assert not page.has_next
        assert not page.has_prev


def test_page_metadata_rounds_up():
    page = RegistrationPage(rows=[], total=21, page=2, page_size=10)
    assert page.total_pages == 3
    assert page.has_next
    assert page.has_prev
