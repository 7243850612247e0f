"""
Apply-time rejections: validation passed against a reading that storage no
longer matches (another writer got there first).
"""
import logging
from types import SimpleNamespace

import pytest

from nooda.models import ActivityLog
from nooda.services import adjustment_service, ledger_service, stock_repository
from nooda.services.errors import StorageConflict
from nooda.validation import SaleItem

from conftest import stock_of


def _stale_reads(monkeypatch, overrides):
    """Serve reads with stock values from an earlier point in time."""
    real_read_many = stock_repository.read_many

    def _read_many(entity_type, ids, *, lock=False):
        rows = real_read_many(entity_type, ids, lock=lock)
        stale = {}
        for entity_id, row in rows.items():
            data = dict(row._mapping)
            if (entity_type, entity_id) in overrides:
                data["stock"] = overrides[(entity_type, entity_id)]
            stale[entity_id] = SimpleNamespace(**data)
        return stale

    monkeypatch.setattr(stock_repository, "read_many", _read_many)


class TestStorageConflict:
    """A rejected delta rolls back every write of the run."""

    def test_sale_rolls_back_every_row(self, sale_catalog, db_session, monkeypatch, caplog):
        p1, p2, tape = sale_catalog["p1"], sale_catalog["p2"], sale_catalog["tape"]

        # Tape really holds 10; the reader sees 50
        _stale_reads(monkeypatch, {("component", tape.id): 50})

        with caplog.at_level(logging.WARNING):
            with pytest.raises(StorageConflict):
                ledger_service.sell([SaleItem(p1.id, 10), SaleItem(p2.id, 10)])

        # P1 and P2 were decremented before Tape rejected; all of it is undone
        assert stock_of(p1) == 20
        assert stock_of(p2) == 20
        assert stock_of(tape) == 10
        assert db_session.query(ActivityLog).count() == 0
        assert "rolled back" in caplog.text

    def test_production_rolls_back(self, production_catalog, monkeypatch):
        product, component = production_catalog["product"], production_catalog["component"]
        _stale_reads(monkeypatch, {("component", component.id): 100})

        with pytest.raises(StorageConflict) as exc_info:
            ledger_service.produce(product.id, 20)

        assert exc_info.value.http_status == 409
        assert stock_of(component) == 25
        assert stock_of(product) == 10

    def test_adjustment(self, production_catalog, monkeypatch):
        component = production_catalog["component"]
        _stale_reads(monkeypatch, {("component", component.id): 100})

        with pytest.raises(StorageConflict):
            adjustment_service.adjust_stock(component.id, "subtract", 30)

        assert stock_of(component) == 25
