from decimal import Decimal

import pytest

from planbook.config import settings
from planbook.core.exceptions import (
    BusinessRuleViolationException,
    EntityNotFoundException,
    ReadOnlyKeyFigure,
    VersionLocked,
)
from planbook.models.planning_data import PlanningData
from planbook.schemas.planning_data import CellUpdate, PlanningDataUpsert
from planbook.services.planning_data_service import PlanningDataService
from planbook.services.version_service import VersionService


def _cell(kf_id, period, value, period_type="month", notes=None):
    return CellUpdate(key_figure_id=kf_id, period=period, period_type=period_type, value=Decimal(value), notes=notes)


def _rows(db, version_id):
    return db.query(PlanningData).filter(PlanningData.version_id == version_id).count()


def test_bulk_upsert_writes_cells_and_history(db, version, seeded_demand):
    service = PlanningDataService(db)
    assert service.get(version.id, seeded_demand.id, "2024-02", "month") == Decimal("120")

    history = VersionService(db).list_history(version_id=version.id, key_figure_id=seeded_demand.id)
    assert len(history) == 3
    assert {h.action for h in history} == {"create"}
    assert {h.changed_by for h in history} == {"planner@example.com"}


def test_unchanged_cells_are_not_rewritten(db, version, seeded_demand):
    result = PlanningDataService(db).bulk_upsert(
        version.id, [_cell(seeded_demand.id, "2024-01", "100"), _cell(seeded_demand.id, "2024-02", "150")], user_id="u2",
    )
    assert result.total == 2
    assert result.changed == 1
    assert result.unchanged == 1

    updates = VersionService(db).list_history(version_id=version.id, action="update")
    assert len(updates) == 1
    assert updates[0].old_value == Decimal("120")
    assert updates[0].new_value == Decimal("150")
    assert updates[0].changed_by == "u2"


def test_duplicate_cells_in_a_batch_last_one_wins(db, version, demand):
    result = PlanningDataService(db).bulk_upsert(
        version.id, [_cell(demand.id, "2024-01", "1"), _cell(demand.id, "2024-01", "2")],
    )
    assert result.changed == 1
    assert PlanningDataService(db).get(version.id, demand.id, "2024-01", "month") == Decimal("2")


def test_locked_version_rejects_whole_batch(db, version, seeded_demand):
    versions = VersionService(db)
    versions.activate(version.id)
    versions.lock(version.id, user_id="approver")

    with pytest.raises(VersionLocked) as exc:
        PlanningDataService(db).bulk_upsert(
            version.id, [_cell(seeded_demand.id, "2024-01", "999"), _cell(seeded_demand.id, "2024-04", "1")],
        )
    assert exc.value.context["version_id"] == version.id
    assert PlanningDataService(db).get(version.id, seeded_demand.id, "2024-01", "month") == Decimal("100")
    assert _rows(db, version.id) == 3


def test_archived_version_is_read_only(db, version, seeded_demand):
    versions = VersionService(db)
    versions.activate(version.id)
    versions.lock(version.id)
    versions.archive(version.id)

    with pytest.raises(VersionLocked):
        PlanningDataService(db).bulk_upsert(version.id, [_cell(seeded_demand.id, "2024-01", "1")])


def test_calculated_cell_rejects_batch_atomically(db, version, demand, demand_plus_10pct):
    with pytest.raises(ReadOnlyKeyFigure) as exc:
        PlanningDataService(db).bulk_upsert(
            version.id, [_cell(demand.id, "2024-01", "10"), _cell(demand_plus_10pct.id, "2024-01", "11")],
        )
    assert exc.value.context["key_figure_code"] == "DEMAND_PLUS_10PCT"
    assert exc.value.context["period"] == "2024-01"
    assert _rows(db, version.id) == 0


def test_malformed_period_key_rejected(db, version, demand):
    with pytest.raises(BusinessRuleViolationException):
        PlanningDataService(db).bulk_upsert(version.id, [_cell(demand.id, "2024-1", "10")])
    assert _rows(db, version.id) == 0


def test_unknown_version_and_key_figure(db, version, demand):
    service = PlanningDataService(db)
    with pytest.raises(EntityNotFoundException):
        service.bulk_upsert(9999, [_cell(demand.id, "2024-01", "1")])
    with pytest.raises(EntityNotFoundException):
        service.bulk_upsert(version.id, [_cell(9999, "2024-01", "1")])


def test_batch_size_limit(db, version, demand, monkeypatch):
    monkeypatch.setattr(settings, "MAX_BULK_UPDATES", 1)
    with pytest.raises(BusinessRuleViolationException):
        PlanningDataService(db).bulk_upsert(
            version.id, [_cell(demand.id, "2024-01", "1"), _cell(demand.id, "2024-02", "1")],
        )


def test_upsert_cell_and_delete(db, version, demand):
    service = PlanningDataService(db)
    row = service.upsert_cell(
        PlanningDataUpsert(
            version_id=version.id, key_figure_id=demand.id, period="2024-05", period_type="month",
            value=Decimal("42"), notes="first cut",
        ),
        user_id="u1",
    )
    assert row.notes == "first cut"
    assert service.get(version.id, demand.id, "2024-05", "month") == Decimal("42")

    service.delete_data(row.id, user_id="u1")
    assert service.get(version.id, demand.id, "2024-05", "month") is None
    deleted = VersionService(db).list_history(version_id=version.id, action="delete")
    assert len(deleted) == 1
    assert deleted[0].old_value == Decimal("42")


def test_list_data_filters_by_period_range(db, version, seeded_demand):
    rows = PlanningDataService(db).list_data(
        version_id=version.id, period_type="month", period_from="2024-02", period_to="2024-03",
    )
    assert [r.time_period for r in rows] == ["2024-02", "2024-03"]
