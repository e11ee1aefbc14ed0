from __future__ import annotations

import argparse
import sys
from datetime import date
from pathlib import Path

from .core.config import get_settings
from .core.logging import configure_logging
from .coordinator import PayrollCoordinator
from .csv_io import export_payroll_run, import_employees
from .exceptions import PayrollError
from .models import Department, DependentProfile, Employee, EventType, Period
from .reports import payroll_trend, run_totals
from .storage import DataStore
from .tax_tables import load_policy
from .views import format_calendar, format_employees, format_payroll, format_payslip, format_trend


def parse_date(value: str) -> date:
    return date.fromisoformat(value)


def parse_period(value: str) -> Period:
    try:
        year, month = value.split("-")
        return Period(int(year), int(month))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected a period as YYYY-MM, got {value!r}") from None


def parse_deduction(value: str) -> tuple[str, float, str]:
    employee_id, _, rest = value.partition("=")
    amount, _, reason = rest.partition(":")
    try:
        return employee_id.strip(), float(amount), reason.strip()
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected ID=AMOUNT[:REASON], got {value!r}") from None


def parse_overtime(value: str) -> tuple[str, float]:
    employee_id, _, amount = value.partition("=")
    try:
        return employee_id.strip(), float(amount)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected ID=AMOUNT, got {value!r}") from None


def coordinator_from_args(args: argparse.Namespace) -> PayrollCoordinator:
    settings = get_settings()
    store = DataStore(
        Path(args.data) if args.data else settings.data_path,
        organization_name=settings.organization_name,
        selected_currency=settings.default_currency,
    )
    policy = load_policy(settings.policy_version, settings.policy_dir)
    return PayrollCoordinator(
        policy,
        store=store,
        period=getattr(args, "period", None),
        service_rate=settings.default_service_rate,
    )


def apply_payroll_options(coordinator: PayrollCoordinator, args: argparse.Namespace) -> None:
    if args.currency:
        coordinator.set_currency(args.currency, persist=False)
    if args.service_rate is not None:
        coordinator.set_service_rate(args.service_rate)
    for employee_id, amount, reason in args.deduction or []:
        coordinator.set_manual_deduction(employee_id, amount, reason)
    for employee_id, amount in args.overtime or []:
        coordinator.set_overtime(employee_id, amount)


def cmd_add_employee(args: argparse.Namespace) -> None:
    coordinator = coordinator_from_args(args)
    employee = coordinator.add_employee(
        Employee(
            id=args.id or "",
            name=args.name,
            department=Department(args.department),
            position=args.position,
            join_date=parse_date(args.join_date),
            base_salary=args.base_salary,
            service_points=args.points,
            dependents=DependentProfile(has_spouse=args.spouse, children=args.children, parents=args.parents),
        )
    )
    print(f"Added employee {employee.id} ({employee.name})")


def cmd_list_employees(args: argparse.Namespace) -> None:
    coordinator = coordinator_from_args(args)
    print(
        format_employees(
            coordinator.employees,
            coordinator.converter,
            coordinator.policy.reference_currency,
            coordinator.selected_currency,
        )
    )


def cmd_delete_employee(args: argparse.Namespace) -> None:
    coordinator = coordinator_from_args(args)
    employee = coordinator.delete_employee(args.id)
    print(f"Deleted employee {employee.id} ({employee.name})")


def cmd_import_employees(args: argparse.Namespace) -> None:
    coordinator = coordinator_from_args(args)
    path = Path(args.path)
    added = coordinator.bulk_add_employees(import_employees(path))
    print(f"Imported {len(added)} employees from {path}")


def cmd_note(args: argparse.Namespace) -> None:
    coordinator = coordinator_from_args(args)
    event = coordinator.add_history_event(
        args.employee,
        EventType(args.type),
        args.description,
        on=parse_date(args.date) if args.date else None,
        amount=args.amount,
    )
    print(f"Recorded {event.type.value} for {event.employee_id}")


def cmd_events(args: argparse.Namespace) -> None:
    coordinator = coordinator_from_args(args)
    for event in coordinator.history_for(args.employee):
        amount = f" ({event.amount:g})" if event.amount is not None else ""
        print(f"{event.date.isoformat()} {event.type.value}: {event.description}{amount}")


def cmd_set_attendance(args: argparse.Namespace) -> None:
    coordinator = coordinator_from_args(args)
    record = coordinator.set_attendance(args.employee, args.day - 1, args.code.upper())
    print(f"{args.employee} day {args.day} set to {args.code.upper()}; paid days: {record.summary.total_paid_days}")


def cmd_attendance(args: argparse.Namespace) -> None:
    coordinator = coordinator_from_args(args)
    coordinator.employee(args.employee)
    print(format_calendar(coordinator.attendance[args.employee], coordinator.period))


def cmd_calculate(args: argparse.Namespace) -> None:
    coordinator = coordinator_from_args(args)
    apply_payroll_options(coordinator, args)
    run = coordinator.calculate()
    if coordinator.ledger.is_finalized(run.period):
        print(f"Note: payroll for {run.period.label()} is already finalized; finalizing again replaces it.")
    print(
        format_payroll(
            run.entries,
            coordinator.employees,
            coordinator.converter,
            coordinator.selected_currency,
            title=f"{coordinator.organization_name} payroll {run.period.label()}",
        )
    )


def cmd_payslip(args: argparse.Namespace) -> None:
    coordinator = coordinator_from_args(args)
    apply_payroll_options(coordinator, args)
    coordinator.calculate()
    entry = coordinator.payslip(args.employee)
    print(
        format_payslip(
            entry,
            coordinator.employee(args.employee),
            coordinator.converter,
            coordinator.selected_currency,
            coordinator.organization_name,
        )
    )


def cmd_finalize(args: argparse.Namespace) -> None:
    coordinator = coordinator_from_args(args)
    apply_payroll_options(coordinator, args)
    coordinator.calculate()
    snapshot = coordinator.finalize()
    print(f"Payroll for {snapshot.period.label()} has been finalized and saved.")


def cmd_runs(args: argparse.Namespace) -> None:
    coordinator = coordinator_from_args(args)
    for period in coordinator.ledger.list_periods():
        totals = run_totals(coordinator.ledger.retrieve(period).entries)
        net = coordinator.converter.format(coordinator.to_display(totals.net_pay), coordinator.selected_currency)
        print(f"{period} employees={totals.employee_count} net={net}")


def cmd_show_run(args: argparse.Namespace) -> None:
    coordinator = coordinator_from_args(args)
    run = coordinator.ledger.retrieve(args.run)
    if run is None:
        print(f"No finalized payroll for {args.run}")
        return
    print(
        format_payroll(
            run.entries,
            run.employees,
            coordinator.converter,
            coordinator.selected_currency,
            title=f"Finalized payroll {run.period.label()}",
        )
    )


def cmd_trend(args: argparse.Namespace) -> None:
    coordinator = coordinator_from_args(args)
    rows = payroll_trend(coordinator.ledger, start=args.start, end=args.end)
    print(format_trend(rows, coordinator.converter, coordinator.selected_currency))


def cmd_export_run(args: argparse.Namespace) -> None:
    coordinator = coordinator_from_args(args)
    run = coordinator.ledger.retrieve(args.run)
    if run is None:
        print(f"No finalized payroll for {args.run}")
        return
    path = export_payroll_run(Path(args.path), run, coordinator.converter, coordinator.selected_currency)
    print(f"Exported payroll {run.period} to {path}")


def cmd_convert(args: argparse.Namespace) -> None:
    coordinator = coordinator_from_args(args)
    source, target = args.source.upper(), args.target.upper()
    amount = coordinator.converter.convert(args.amount, source, target)
    print(f"{args.amount:g} {source} = {amount:.2f} {target}")


def cmd_set_currency(args: argparse.Namespace) -> None:
    coordinator = coordinator_from_args(args)
    coordinator.set_currency(args.code)
    print(f"Display currency set to {coordinator.selected_currency}")


def cmd_set_name(args: argparse.Namespace) -> None:
    coordinator = coordinator_from_args(args)
    coordinator.set_organization_name(args.name)
    print(f"Organization name set to {coordinator.organization_name}")


def add_payroll_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--service-rate", type=float, help="Service money per point, in the display currency")
    parser.add_argument("--deduction", type=parse_deduction, action="append", help="ID=AMOUNT[:REASON] in display currency")
    parser.add_argument("--overtime", type=parse_overtime, action="append", help="ID=AMOUNT in MMK")
    parser.add_argument("--currency", help="Display currency for this command only")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Payroll and historical ledger CLI")
    parser.add_argument("--data", help="Path to the JSON data store")
    sub = parser.add_subparsers(dest="command", required=True)

    employee = sub.add_parser("add-employee", help="Add an employee")
    employee.add_argument("name")
    employee.add_argument("department", choices=[d.value for d in Department])
    employee.add_argument("position")
    employee.add_argument("join_date")
    employee.add_argument("base_salary", type=float, help="Base salary in USD")
    employee.add_argument("--points", type=float, default=0.0, help="Service points")
    employee.add_argument("--spouse", action="store_true")
    employee.add_argument("--children", type=int, default=0)
    employee.add_argument("--parents", type=int, default=0)
    employee.add_argument("--id")
    employee.set_defaults(func=cmd_add_employee)

    list_employees = sub.add_parser("list-employees", help="List the roster")
    list_employees.set_defaults(func=cmd_list_employees)

    delete = sub.add_parser("delete-employee", help="Remove an employee from the roster")
    delete.add_argument("id")
    delete.set_defaults(func=cmd_delete_employee)

    imp = sub.add_parser("import-employees", help="Import employees from CSV")
    imp.add_argument("path")
    imp.set_defaults(func=cmd_import_employees)

    note = sub.add_parser("note", help="Record an employee history event")
    note.add_argument("employee")
    note.add_argument("type", choices=[t.value for t in EventType])
    note.add_argument("description")
    note.add_argument("--date")
    note.add_argument("--amount", type=float)
    note.set_defaults(func=cmd_note)

    events = sub.add_parser("events", help="Show an employee's history")
    events.add_argument("employee")
    events.set_defaults(func=cmd_events)

    set_attendance = sub.add_parser("set-attendance", help="Set one day's attendance status")
    set_attendance.add_argument("employee")
    set_attendance.add_argument("day", type=int, help="Day of month, starting at 1")
    set_attendance.add_argument("code", help="P, O, S, L, LW or A")
    set_attendance.add_argument("--period", type=parse_period)
    set_attendance.set_defaults(func=cmd_set_attendance)

    attendance = sub.add_parser("attendance", help="Render an employee's attendance calendar")
    attendance.add_argument("employee")
    attendance.add_argument("--period", type=parse_period)
    attendance.set_defaults(func=cmd_attendance)

    calculate = sub.add_parser("calculate", help="Calculate payroll for the period")
    calculate.add_argument("--period", type=parse_period)
    add_payroll_options(calculate)
    calculate.set_defaults(func=cmd_calculate)

    payslip = sub.add_parser("payslip", help="Calculate and print one employee's payslip")
    payslip.add_argument("employee")
    payslip.add_argument("--period", type=parse_period)
    add_payroll_options(payslip)
    payslip.set_defaults(func=cmd_payslip)

    finalize = sub.add_parser("finalize", help="Calculate and finalize payroll for the period")
    finalize.add_argument("--period", type=parse_period)
    add_payroll_options(finalize)
    finalize.set_defaults(func=cmd_finalize)

    runs = sub.add_parser("runs", help="List finalized payroll periods")
    runs.set_defaults(func=cmd_runs)

    show_run = sub.add_parser("show-run", help="Show a finalized payroll run")
    show_run.add_argument("run", type=parse_period)
    show_run.set_defaults(func=cmd_show_run)

    trend = sub.add_parser("trend", help="Totals across finalized periods")
    trend.add_argument("--start", type=parse_period)
    trend.add_argument("--end", type=parse_period)
    trend.set_defaults(func=cmd_trend)

    export = sub.add_parser("export-run", help="Export a finalized run to CSV")
    export.add_argument("run", type=parse_period)
    export.add_argument("path")
    export.set_defaults(func=cmd_export_run)

    convert = sub.add_parser("convert", help="Convert an amount between currencies")
    convert.add_argument("amount", type=float)
    convert.add_argument("source")
    convert.add_argument("target")
    convert.set_defaults(func=cmd_convert)

    currency = sub.add_parser("set-currency", help="Select the display currency")
    currency.add_argument("code")
    currency.set_defaults(func=cmd_set_currency)

    name = sub.add_parser("set-name", help="Set the organization display name")
    name.add_argument("name")
    name.set_defaults(func=cmd_set_name)

    return parser


def main(argv: list[str] | None = None) -> None:
    configure_logging(get_settings().log_level)
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        args.func(args)
    except PayrollError as exc:
        print(str(exc), file=sys.stderr)
        raise SystemExit(1) from None
    except KeyError as exc:
        print(exc.args[0] if exc.args else str(exc), file=sys.stderr)
        raise SystemExit(1) from None


if __name__ == "__main__":
    main()
