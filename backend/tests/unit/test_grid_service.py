import pytest

from planbook.core.exceptions import EntityNotFoundException, InvalidHierarchyLevel
from planbook.services.grid_service import GridService


def test_calculated_row_over_monthly_horizon(db, version, monthly_setting, seeded_demand, demand_plus_10pct):
    grid = GridService(db).build_grid(version.id, monthly_setting.id, [demand_plus_10pct.id])

    assert [c.period for c in grid.columns] == ["2024-01", "2024-02", "2024-03"]
    assert len(grid.rows) == 1
    row = grid.rows[0]
    assert row.key_figure_code == "DEMAND_PLUS_10PCT"
    assert [round(c.value, 6) for c in row.values] == [110, 132, 99]
    assert all(c.data_id is None and c.notes is None for c in row.values)


def test_base_row_carries_data_ids(db, version, monthly_setting, seeded_demand):
    grid = GridService(db).build_grid(version.id, monthly_setting.id, [seeded_demand.id])
    row = grid.rows[0]
    assert [c.value for c in row.values] == [100, 120, 90]
    assert all(c.has_data and c.data_id is not None for c in row.values)


def test_default_rows_are_all_active_key_figures(db, version, monthly_setting, seeded_demand, demand_plus_10pct):
    grid = GridService(db).build_grid(version.id, monthly_setting.id)
    assert [r.key_figure_code for r in grid.rows] == ["DEMAND", "DEMAND_PLUS_10PCT"]


def test_missing_cells_render_zero(db, version, monthly_setting, demand):
    grid = GridService(db).build_grid(version.id, monthly_setting.id, [demand.id])
    assert [c.value for c in grid.rows[0].values] == [0, 0, 0]
    assert not any(c.has_data for c in grid.rows[0].values)


def test_empty_key_figure_set_yields_empty_grid(db, version, monthly_setting):
    grid = GridService(db).build_grid(version.id, monthly_setting.id, [])
    assert grid.columns == []
    assert grid.rows == []


def test_disabled_level_rejected(db, version, monthly_setting, demand):
    with pytest.raises(InvalidHierarchyLevel):
        GridService(db).build_grid(version.id, monthly_setting.id, [demand.id], level="week")


def test_unknown_references(db, version, monthly_setting, demand):
    service = GridService(db)
    with pytest.raises(EntityNotFoundException):
        service.build_grid(9999, monthly_setting.id, [demand.id])
    with pytest.raises(EntityNotFoundException):
        service.build_grid(version.id, monthly_setting.id, [demand.id, 9999])
