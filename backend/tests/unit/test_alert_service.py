from decimal import Decimal

import pytest

from planbook.core.exceptions import (
    BusinessRuleViolationException,
    EntityNotFoundException,
    InvalidStateTransitionException,
)
from planbook.schemas.alert import AlertRuleCreate, AlertRuleUpdate
from planbook.schemas.planning_data import CellUpdate
from planbook.schemas.time_setting import TimeSettingUpdate
from planbook.services.alert_service import AlertService, render_message
from planbook.services.planning_data_service import PlanningDataService
from planbook.services.time_setting_service import TimeSettingService


def _rule(kf_id, comparison="lt", threshold="100", **extra):
    return AlertRuleCreate(
        name="Low demand",
        key_figure_id=kf_id,
        comparison=comparison,
        threshold_value=Decimal(threshold),
        alert_type="shortage",
        severity="warning",
        **extra,
    )


def test_breach_creates_alert_with_default_message(db, version, seeded_demand):
    service = AlertService(db)
    service.create_rule(_rule(seeded_demand.id))

    alerts = service.evaluate(version.id)
    assert len(alerts) == 1
    alert = alerts[0]
    assert alert.time_period == "2024-03"
    assert alert.actual_value == Decimal("90")
    assert alert.threshold_value == Decimal("100")
    assert alert.message == "DEMAND 90 < threshold 100 in 2024-03"
    assert alert.is_resolved is False


def test_re_evaluation_is_idempotent(db, version, seeded_demand):
    service = AlertService(db)
    service.create_rule(_rule(seeded_demand.id))

    first = service.evaluate(version.id)
    second = service.evaluate(version.id)
    assert [a.id for a in first] == [a.id for a in second]
    assert len(service.list_unresolved(version_id=version.id)) == 1


def test_refresh_updates_actual_value_in_place(db, version, seeded_demand):
    service = AlertService(db)
    service.create_rule(_rule(seeded_demand.id))
    first = service.evaluate(version.id)[0]

    PlanningDataService(db).bulk_upsert(
        version.id,
        [CellUpdate(key_figure_id=seeded_demand.id, period="2024-03", period_type="month", value=Decimal("80"))],
    )
    refreshed = service.evaluate(version.id)[0]
    assert refreshed.id == first.id
    assert refreshed.actual_value == Decimal("80")


def test_resolved_alert_is_not_reopened(db, version, seeded_demand):
    service = AlertService(db)
    service.create_rule(_rule(seeded_demand.id))
    original = service.evaluate(version.id)[0]

    resolved = service.resolve(original.id, user_id="planner@example.com")
    assert resolved.is_resolved is True
    assert resolved.resolved_by == "planner@example.com"
    assert resolved.resolved_at is not None

    reopened = service.evaluate(version.id)
    assert len(reopened) == 1
    assert reopened[0].id != original.id
    assert len(service.list_alerts(version_id=version.id)) == 2
    assert len(service.list_unresolved(version_id=version.id)) == 1


def test_resolving_twice_is_rejected(db, version, seeded_demand):
    service = AlertService(db)
    service.create_rule(_rule(seeded_demand.id))
    alert = service.evaluate(version.id)[0]
    service.resolve(alert.id)
    with pytest.raises(InvalidStateTransitionException):
        service.resolve(alert.id)


def test_cells_without_data_never_alert(db, version, demand):
    service = AlertService(db)
    service.create_rule(_rule(demand.id, comparison="lte", threshold="0"))
    assert service.evaluate(version.id) == []


def test_calculated_rule_uses_periods_of_base_inputs(db, version, seeded_demand, demand_plus_10pct):
    service = AlertService(db)
    service.create_rule(_rule(demand_plus_10pct.id, comparison="gt", threshold="130"))

    alerts = service.evaluate(version.id)
    assert [(a.time_period, a.actual_value) for a in alerts] == [("2024-02", Decimal("132"))]


def test_pinned_horizon_rule(db, version, monthly_setting, seeded_demand):
    service = AlertService(db)
    service.create_rule(_rule(
        seeded_demand.id, comparison="gte", threshold="120",
        time_setting_id=monthly_setting.id, period_type="month",
    ))
    alerts = service.evaluate(version.id)
    assert [a.time_period for a in alerts] == ["2024-02"]


def test_pinned_level_cannot_be_disabled_under_a_rule(db, version, monthly_setting, seeded_demand):
    service = AlertService(db)
    pinned = service.create_rule(_rule(
        seeded_demand.id, comparison="gte", threshold="120",
        time_setting_id=monthly_setting.id, period_type="month",
    ))
    service.create_rule(_rule(seeded_demand.id))

    settings_service = TimeSettingService(db)
    with pytest.raises(BusinessRuleViolationException) as exc_info:
        settings_service.update_setting(monthly_setting.id, TimeSettingUpdate(time_hierarchy=["quarter"]))
    assert exc_info.value.context["rule_ids"] == [pinned.id]
    assert settings_service.get_setting(monthly_setting.id).hierarchy_levels == ["month"]

    settings_service.update_setting(monthly_setting.id, TimeSettingUpdate(time_hierarchy=["month", "quarter"]))
    alerts = service.evaluate(version.id)
    assert sorted(a.time_period for a in alerts) == ["2024-02", "2024-03"]


def test_pinned_level_must_be_enabled(db, monthly_setting, demand):
    with pytest.raises(BusinessRuleViolationException):
        AlertService(db).create_rule(_rule(demand.id, time_setting_id=monthly_setting.id, period_type="week"))


def test_custom_message_template(db, version, seeded_demand):
    service = AlertService(db)
    service.create_rule(_rule(seeded_demand.id, message="Only {actual} units of {code} in {period}"))
    alert = service.evaluate(version.id)[0]
    assert alert.message == "Only 90 units of DEMAND in 2024-03"


def test_unknown_template_placeholder_rejected(db, demand):
    with pytest.raises(BusinessRuleViolationException):
        AlertService(db).create_rule(_rule(demand.id, message="{product} is short"))


def test_inactive_rules_are_skipped(db, version, seeded_demand):
    service = AlertService(db)
    rule = service.create_rule(_rule(seeded_demand.id))
    service.update_rule(rule.id, AlertRuleUpdate(is_active=False))
    assert service.evaluate(version.id) == []


def test_unknown_version(db, demand):
    with pytest.raises(EntityNotFoundException):
        AlertService(db).evaluate(9999)


def test_render_message_formats_numbers():
    text = render_message(None, "STOCK", Decimal("12.5000"), "gte", Decimal("10.0000"), "2024-W02")
    assert text == "STOCK 12.5 >= threshold 10 in 2024-W02"
