"""Report persistence helpers against a mocked motor collection."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from wastereport.crud import report as report_crud


@pytest.fixture
def collection(monkeypatch, created_report) -> MagicMock:
    stored = dict(created_report)
    collection = MagicMock()
    collection.update_one = AsyncMock(return_value=MagicMock(matched_count=1, modified_count=1))
    collection.find_one = AsyncMock(return_value=stored)
    monkeypatch.setattr(report_crud, "reports_collection", collection)
    return collection


class TestUpdateReportStatus:
    @pytest.mark.asyncio
    async def test_returns_updated_report(self, collection, created_report):
        collection.find_one.return_value = dict(created_report, status="in_progress")

        report = await report_crud.update_report_status(created_report["_id"], "in_progress")

        assert report["status"] == "in_progress"
        collection.update_one.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unchanged_status_still_returns_report(self, collection, created_report):
        collection.update_one.return_value = MagicMock(matched_count=1, modified_count=0)

        report = await report_crud.update_report_status(created_report["_id"], "pending")

        assert report is not None
        assert report["_id"] == created_report["_id"]
        assert report["status"] == "pending"

    @pytest.mark.asyncio
    async def test_unknown_report_returns_none(self, collection, created_report):
        collection.update_one.return_value = MagicMock(matched_count=0, modified_count=0)

        assert await report_crud.update_report_status(created_report["_id"], "completed") is None
        collection.find_one.assert_not_awaited()
