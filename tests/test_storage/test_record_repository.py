"""Tests for RecordRepository SQL plumbing and schema helpers."""

import json

import pytest

from trendflow.ingestion.schemas import StoredRecord
from trendflow.storage.repository import RecordRepository
from trendflow.storage.schema import load_json


class TestRecordRepository:
    @pytest.mark.asyncio
    async def test_get_by_key_missing(self, mock_database):
        assert await RecordRepository(mock_database).get_by_key("reddit", "x") is None

    @pytest.mark.asyncio
    async def test_get_by_key_found(self, mock_database):
        mock_database.fetchrow.return_value = {"id": 3, "score": 1, "num_comments": 2, "body": "b"}

        stored = await RecordRepository(mock_database).get_by_key("reddit", "x")

        assert stored == StoredRecord(id=3, score=1, num_comments=2, body="b")
        assert mock_database.fetchrow.await_args.args[1:] == ("reddit", "x")

    @pytest.mark.asyncio
    async def test_insert_writes_record_and_passages_in_one_transaction(self, mock_database, make_record):
        mock_database.conn.fetchval.return_value = 12

        record_id = await RecordRepository(mock_database).insert(make_record("a"), ["one", "two"])

        assert record_id == 12
        mock_database.transaction.assert_called_once()
        rows = mock_database.conn.executemany.await_args.args[1]
        assert rows == [(12, 0, "one"), (12, 1, "two")]

    @pytest.mark.asyncio
    async def test_insert_without_passages(self, mock_database, make_record):
        await RecordRepository(mock_database).insert(make_record("a"), [])

        mock_database.conn.executemany.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_mutable(self, mock_database, make_record):
        record = make_record("a", score=100, meta={"k": "v"})

        await RecordRepository(mock_database).update_mutable(5, record)

        args = mock_database.execute.await_args.args
        assert args[1:5] == (5, 100, 7, "Clients pay late. Reminders do not work!")
        assert json.loads(args[5]) == {"k": "v"}


class TestLoadJson:
    def test_text_is_decoded(self):
        assert load_json('{"a": 1}', {}) == {"a": 1}

    def test_none_gives_default(self):
        assert load_json(None, []) == []

    def test_decoded_value_passes_through(self):
        assert load_json({"a": 1}, {}) == {"a": 1}
