from dataclasses import replace
from datetime import date

import pytest

from payledger.coordinator import PayrollCoordinator
from payledger.exceptions import PayrollNotCalculatedError, RosterValidationError
from payledger.models import Department, DependentProfile, Employee, EventType, Period
from payledger.storage import DataStore
from payledger.tax_tables import load_policy

JUNE = Period(2024, 6)


def build_employee(employee_id: str = "EMP001", **overrides) -> Employee:
    fields = dict(
        id=employee_id,
        name="Aung Aung",
        department=Department.FRONT_OFFICE,
        position="Receptionist",
        join_date=date(2022, 1, 15),
        base_salary=400,
        service_points=5,
        dependents=DependentProfile(has_spouse=True, children=1),
    )
    fields.update(overrides)
    return Employee(**fields)


def build_coordinator(store: DataStore | None = None) -> PayrollCoordinator:
    coordinator = PayrollCoordinator(load_policy(), store=store, period=JUNE)
    coordinator.add_employee(build_employee())
    coordinator.add_employee(build_employee("EMP002", name="Ma Mya", position="Room Attendant", base_salary=300))
    return coordinator


def test_new_employee_gets_full_month_of_present_days():
    coordinator = build_coordinator()

    record = coordinator.attendance["EMP001"]

    assert record.daily_statuses == ["P"] * 30
    assert record.summary.total_paid_days == 30


def test_calculate_produces_entry_per_employee():
    coordinator = build_coordinator()

    run = coordinator.calculate()

    assert run.period == JUNE
    assert [e.employee_id for e in coordinator.current_entries()] == ["EMP001", "EMP002"]
    assert round(coordinator.payslip("EMP001").net_pay) == 1_517_783


@pytest.mark.parametrize(
    "mutate",
    [
        lambda c: c.set_attendance("EMP001", 0, "A"),
        lambda c: c.set_manual_deduction("EMP001", 1000, "Late"),
        lambda c: c.set_service_rate(60_000),
        lambda c: c.set_overtime("EMP002", 5000),
        lambda c: c.add_employee(build_employee("EMP003", name="Kyaw Kyaw")),
        lambda c: c.update_employee(replace(c.employee("EMP001"), service_points=6)),
        lambda c: c.delete_employee("EMP002"),
        lambda c: c.set_currency("USD"),
    ],
)
def test_any_input_mutation_invalidates_entries(mutate):
    coordinator = build_coordinator()
    coordinator.calculate()
    version = coordinator.input_version

    mutate(coordinator)

    assert coordinator.input_version > version
    with pytest.raises(PayrollNotCalculatedError):
        coordinator.current_entries()


def test_finalize_without_calculation_changes_nothing():
    coordinator = build_coordinator()

    with pytest.raises(PayrollNotCalculatedError):
        coordinator.finalize()
    with pytest.raises(PayrollNotCalculatedError):
        coordinator.payslip("EMP001")

    assert coordinator.ledger.list_periods() == []


def test_deleted_employee_remains_in_finalized_run():
    coordinator = build_coordinator()
    coordinator.calculate()
    coordinator.finalize()

    coordinator.delete_employee("EMP002")
    run = coordinator.calculate()

    assert run.entry_for("EMP002") is None
    snapshot = coordinator.ledger.retrieve(JUNE)
    assert snapshot.employee("EMP002").name == "Ma Mya"
    assert snapshot.entry_for("EMP002").base_salary == 1_050_000


def test_roster_edit_after_finalize_does_not_touch_snapshot():
    coordinator = build_coordinator()
    coordinator.calculate()
    coordinator.finalize()

    coordinator.update_employee(replace(coordinator.employee("EMP001"), name="U Aung Aung", base_salary=500))

    assert coordinator.ledger.retrieve(JUNE).employee("EMP001").name == "Aung Aung"
    assert coordinator.ledger.retrieve(JUNE).entry_for("EMP001").base_salary == 1_400_000


def test_refinalize_replaces_period_snapshot():
    coordinator = build_coordinator()
    coordinator.calculate()
    first = coordinator.finalize()

    coordinator.set_manual_deduction("EMP001", 10_000, "Breakage")
    coordinator.calculate()
    second = coordinator.finalize()

    assert coordinator.ledger.list_periods() == [JUNE]
    assert coordinator.ledger.retrieve(JUNE) == second
    assert second.entry_for("EMP001").net_pay == pytest.approx(first.entry_for("EMP001").net_pay - 10_000)


def test_invalid_employee_leaves_roster_unchanged():
    coordinator = build_coordinator()

    with pytest.raises(RosterValidationError):
        coordinator.add_employee(build_employee("EMP009", position=""))
    with pytest.raises(RosterValidationError):
        coordinator.bulk_add_employees([build_employee("EMP010"), build_employee("EMP011", join_date=None)])

    assert [e.id for e in coordinator.employees] == ["EMP001", "EMP002"]


def test_add_employee_assigns_id_and_records_hire():
    coordinator = build_coordinator()

    employee = coordinator.add_employee(build_employee("", name="Su Su"))

    assert employee.id.startswith("EMP")
    events = coordinator.history_for(employee.id)
    assert [event.type for event in events] == [EventType.HIRED]
    assert employee.id in coordinator.attendance


def test_period_change_resizes_attendance_and_resets_deductions():
    coordinator = build_coordinator()
    coordinator.set_attendance("EMP001", 29, "A")
    coordinator.set_manual_deduction("EMP001", 1000, "Late")

    coordinator.set_period(Period(2024, 7))

    record = coordinator.attendance["EMP001"]
    assert len(record.daily_statuses) == 31
    assert record.daily_statuses[29] == "A"
    assert record.daily_statuses[30] == "P"
    assert coordinator.config.manual_deductions == {}


def test_state_survives_store_reload(tmp_path):
    path = tmp_path / "store.json"
    coordinator = build_coordinator(DataStore(path))
    coordinator.set_attendance("EMP002", 2, "LW")
    coordinator.set_organization_name("Hotel Lotus")
    coordinator.calculate()
    coordinator.finalize()

    reloaded = PayrollCoordinator(load_policy(), store=DataStore(path))

    assert reloaded.organization_name == "Hotel Lotus"
    assert reloaded.period == JUNE
    assert [e.id for e in reloaded.employees] == ["EMP001", "EMP002"]
    assert reloaded.attendance["EMP002"].daily_statuses[2] == "LW"
    assert reloaded.ledger.retrieve(JUNE) == coordinator.ledger.retrieve(JUNE)


def test_session_currency_is_not_saved(tmp_path):
    path = tmp_path / "store.json"
    coordinator = build_coordinator(DataStore(path))

    coordinator.set_currency("USD", persist=False)
    coordinator.set_manual_deduction("EMP001", 10, "Uniform")

    assert coordinator.config.display_currency == "USD"
    assert DataStore(path).selected_currency == "MMK"
    coordinator.set_currency("THB")
    assert DataStore(path).selected_currency == "THB"
