import csv
from datetime import date

import pytest

from payledger.coordinator import PayrollCoordinator
from payledger.csv_io import export_payroll_run, import_employees
from payledger.exceptions import RosterImportError
from payledger.models import Department, Period
from payledger.tax_tables import load_policy

HEADER = "name,department,position,join_date,base_salary,service_points,has_spouse,children,parents\n"


def write_csv(path, body: str, header: str = HEADER):
    path.write_text(header + body, encoding="utf-8")
    return path


def test_import_coerces_types(tmp_path):
    path = write_csv(
        tmp_path / "roster.csv",
        "Kyaw Kyaw,Food & Beverage,Waiter,2023-03-01,350,4,true,2,2\n"
        "Zaw Zaw,Maintenance,Technician,2022-08-01,500,6,false,0,0\n",
    )

    employees = import_employees(path)

    assert [e.name for e in employees] == ["Kyaw Kyaw", "Zaw Zaw"]
    first = employees[0]
    assert first.department is Department.FOOD_AND_BEVERAGE
    assert first.join_date == date(2023, 3, 1)
    assert first.base_salary == 350.0
    assert first.dependents.has_spouse is True
    assert first.dependents.children == 2
    assert employees[1].dependents.has_spouse is False


def test_missing_columns_abort_import(tmp_path):
    path = write_csv(tmp_path / "roster.csv", "Ba Oo,Security,Guard,2023-06-01\n", header="name,department,position,join_date\n")

    with pytest.raises(RosterImportError) as excinfo:
        import_employees(path)

    assert excinfo.value.missing_columns == ["base_salary", "service_points", "has_spouse", "children", "parents"]


def test_bad_row_rejects_whole_batch(tmp_path):
    path = write_csv(
        tmp_path / "roster.csv",
        "Kyaw Kyaw,Food & Beverage,Waiter,2023-03-01,350,4,true,2,2\n"
        "Ba Oo,Security,Guard,not-a-date,320,4,false,0,2\n"
        ",Security,Guard,2023-06-01,abc,4,false,0,2\n",
    )
    coordinator = PayrollCoordinator(load_policy(), period=Period(2024, 6))

    with pytest.raises(RosterImportError) as excinfo:
        coordinator.bulk_add_employees(import_employees(path))

    assert sorted(excinfo.value.row_errors) == [3, 4]
    assert "join_date" in excinfo.value.row_errors[3]
    assert coordinator.employees == []


def test_row_with_extra_fields_is_reported_by_line(tmp_path):
    path = write_csv(
        tmp_path / "roster.csv",
        "Kyaw Kyaw,Food & Beverage,Waiter,2023-03-01,350,4,true,2,2\n"
        "Ba Oo,Security,Guard,2023-06-01,320,4,false,0,2,extra\n",
    )

    with pytest.raises(RosterImportError) as excinfo:
        import_employees(path)

    assert list(excinfo.value.row_errors) == [3]
    assert "extra field" in excinfo.value.row_errors[3]


def test_byte_order_mark_is_ignored(tmp_path):
    path = tmp_path / "roster.csv"
    path.write_text(
        "\ufeff" + HEADER + "Kyaw Kyaw,Food & Beverage,Waiter,2023-03-01,350,4,true,2,2\n",
        encoding="utf-8",
    )

    employees = import_employees(path)

    assert [e.name for e in employees] == ["Kyaw Kyaw"]


def test_export_run_writes_display_currency(tmp_path):
    coordinator = PayrollCoordinator(load_policy(), period=Period(2024, 6))
    path = write_csv(tmp_path / "roster.csv", "Kyaw Kyaw,Food & Beverage,Waiter,2023-03-01,350,4,true,2,2\n")
    employee = coordinator.bulk_add_employees(import_employees(path))[0]
    coordinator.calculate()
    run = coordinator.finalize()
    coordinator.delete_employee(employee.id)

    output = export_payroll_run(tmp_path / "out" / "june.csv", run, coordinator.converter, "USD")

    with output.open(newline="", encoding="utf-8") as handle:
        rows = list(csv.DictReader(handle))
    assert rows[0]["name"] == "Kyaw Kyaw"
    assert float(rows[0]["gross_pay"]) == pytest.approx(run.entries[0].gross_pay / 3500, abs=0.01)
