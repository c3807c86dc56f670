"""Console interface for the water ledger."""

import argparse
import sys
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import List, Optional

from waterledger.config import get_settings
from waterledger.diagnostics import configure_logging
from waterledger.models.records import Customer, ExpenseCategory, PaymentMethod
from waterledger.models.reports import Period, RangeStats
from waterledger.orchestrator import RecordNotFoundError, WaterLedger, create_app_components
from waterledger.reports import collection_rate
from waterledger.services.storage import FileKeyValueStorage
from waterledger.store import NotAuthenticatedError
from waterledger.validation import RecordValidationError


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"Invalid date '{value}'. Expected format YYYY-MM-DD."
        ) from exc


def _parse_amount(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError("Amount must be a numeric value") from exc


def _format_customer(customer: Customer, balance: Decimal) -> str:
    phone = customer.phone or "-"
    return (
        f"[{customer.id}] Flat {customer.flat_number}: {customer.name} "
        f"(phone {phone}, rate {customer.rate}) balance {balance:.2f}"
    )


def _format_stats(label: str, stats: RangeStats) -> str:
    return (
        f"{label}: {stats.delivery_count} deliveries, {stats.bottles_delivered} bottles, "
        f"revenue {stats.revenue:.2f}, collected {stats.collected:.2f}, "
        f"expenses {stats.expense_total:.2f}, profit {stats.profit:.2f}"
    )


def _report_save(saved: bool, message: str) -> int:
    if not saved:
        print("Could not save the change; nothing was recorded.", file=sys.stderr)
        return 1
    print(message)
    return 0


def handle_customer(args: argparse.Namespace, ledger: WaterLedger) -> int:
    if args.command == "add":
        customer, saved = ledger.add_customer(args.flat_number, args.name, args.phone or "", args.rate)
        return _report_save(saved, "Customer added:\n" + _format_customer(customer, Decimal("0")))
    if args.command == "list":
        customers = ledger.collections.customers
        if not customers:
            print("No customers found.")
            return 0
        print(f"Found {len(customers)} customers:")
        for customer in customers:
            print(_format_customer(customer, ledger.outstanding_for(customer.flat_number)))
        return 0
    if args.command == "remove":
        saved = ledger.remove_customer(args.id)
        return _report_save(saved, f"Customer {args.id} and their records removed.")
    return 2


def handle_delivery(args: argparse.Namespace, ledger: WaterLedger) -> int:
    if args.command == "add":
        delivery, saved = ledger.add_delivery(
            args.flat_number, args.delivered, args.collected, args.notes or "", args.date,
        )
        return _report_save(
            saved,
            f"Delivery [{delivery.id}] {delivery.date} flat {delivery.flat_number}: "
            f"{delivery.delivered} bottles, amount {delivery.amount:.2f}",
        )
    if args.command == "delete":
        saved = ledger.delete_delivery(args.id)
        return _report_save(saved, f"Delivery {args.id} deleted.")
    return 2


def handle_payment(args: argparse.Namespace, ledger: WaterLedger) -> int:
    if args.command == "add":
        payment, saved = ledger.add_payment(
            args.flat_number, args.amount, args.method, args.notes or "", args.date,
        )
        return _report_save(
            saved,
            f"Payment [{payment.id}] {payment.date} flat {payment.flat_number}: "
            f"received {payment.amount_received:.2f} of {payment.total_bill:.2f} ({payment.status.value}), "
            f"remaining {payment.remaining_balance:.2f}",
        )
    if args.command == "delete":
        saved = ledger.delete_payment(args.id)
        return _report_save(saved, f"Payment {args.id} deleted.")
    return 2


def handle_expense(args: argparse.Namespace, ledger: WaterLedger) -> int:
    if args.command == "add":
        expense, saved = ledger.add_expense(
            args.category, args.amount, args.description or "", args.method, args.notes or "", args.date,
        )
        return _report_save(
            saved,
            f"Expense [{expense.id}] {expense.date} {expense.category.value}: {expense.amount:.2f}",
        )
    if args.command == "delete":
        saved = ledger.delete_expense(args.id)
        return _report_save(saved, f"Expense {args.id} deleted.")
    return 2


def handle_stats(args: argparse.Namespace, ledger: WaterLedger) -> int:
    stats = ledger.dashboard()
    print(_format_stats("Today", stats.today))
    print(_format_stats("This week", stats.week))
    print(_format_stats("This month", stats.month))
    rate = collection_rate(stats.total_collected, stats.total_revenue)
    print(
        f"Customers: {stats.total_customers} | Revenue {stats.total_revenue:.2f} | "
        f"Collected {stats.total_collected:.2f} ({rate:.1f}%) | Outstanding {stats.outstanding:.2f} | "
        f"Pending empties {stats.pending_empties}"
    )
    breakdown = ledger.expense_breakdown(args.period)
    for category, amount in breakdown.items():
        print(f"  {category.value}: {amount:.2f}")
    return 0


def handle_dues(args: argparse.Namespace, ledger: WaterLedger) -> int:
    dues = ledger.dues()
    if args.overdue_only:
        dues = [due for due in dues if due.is_overdue]
    if not dues:
        print("No pending dues.")
        return 0
    for due in dues:
        marker = " OVERDUE" if due.is_overdue else ""
        last = due.last_delivery_date.isoformat() if due.last_delivery_date else "-"
        print(
            f"Flat {due.customer.flat_number} {due.customer.name}: {due.outstanding:.2f} "
            f"(last delivery {last}, {due.days_pending} days){marker}"
        )
    return 0


def handle_top(args: argparse.Namespace, ledger: WaterLedger) -> int:
    for entry in ledger.top_customers(args.limit):
        print(f"{entry.rank}. Flat {entry.customer.flat_number} {entry.customer.name}: {entry.revenue:.2f}")
    return 0


def handle_export(args: argparse.Namespace, ledger: WaterLedger) -> int:
    filename, payload = ledger.export()
    target = Path(args.output or filename)
    target.write_bytes(payload)
    print(f"Exported to {target}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Water delivery ledger CLI")
    parser.add_argument(
        "--data-dir",
        default=settings.storage.data_dir,
        type=Path,
        help="Directory to store ledger data (default: ./data)",
    )
    parser.add_argument("--verbose", action="store_true", help="Print diagnostic log lines")

    subparsers = parser.add_subparsers(dest="entity", required=True)

    login = subparsers.add_parser("login", help="Log in as a business")
    login.add_argument("business_name")
    login.add_argument("--phone", default="")

    subparsers.add_parser("logout", help="Log out of the current business")

    customer_parser = subparsers.add_parser("customer", help="Manage customers")
    customer_sub = customer_parser.add_subparsers(dest="command", required=True)
    customer_add = customer_sub.add_parser("add", help="Add a customer")
    customer_add.add_argument("flat_number")
    customer_add.add_argument("name")
    customer_add.add_argument("--phone")
    customer_add.add_argument("--rate", type=_parse_amount)
    customer_sub.add_parser("list", help="List customers with balances")
    customer_remove = customer_sub.add_parser("remove", help="Remove a customer and their records")
    customer_remove.add_argument("id", type=int)

    delivery_parser = subparsers.add_parser("delivery", help="Manage deliveries")
    delivery_sub = delivery_parser.add_subparsers(dest="command", required=True)
    delivery_add = delivery_sub.add_parser("add", help="Record a delivery")
    delivery_add.add_argument("flat_number")
    delivery_add.add_argument("delivered", type=int)
    delivery_add.add_argument("--collected", type=int, default=0)
    delivery_add.add_argument("--date", type=_parse_date)
    delivery_add.add_argument("--notes")
    delivery_delete = delivery_sub.add_parser("delete", help="Delete a delivery")
    delivery_delete.add_argument("id", type=int)

    payment_parser = subparsers.add_parser("payment", help="Manage payments")
    payment_sub = payment_parser.add_subparsers(dest="command", required=True)
    payment_add = payment_sub.add_parser("add", help="Record a payment")
    payment_add.add_argument("flat_number")
    payment_add.add_argument("amount", type=_parse_amount)
    payment_add.add_argument(
        "--method",
        choices=[m.value for m in PaymentMethod],
        default=PaymentMethod.CASH.value,
    )
    payment_add.add_argument("--date", type=_parse_date)
    payment_add.add_argument("--notes")
    payment_delete = payment_sub.add_parser("delete", help="Delete a payment")
    payment_delete.add_argument("id", type=int)

    expense_parser = subparsers.add_parser("expense", help="Manage expenses")
    expense_sub = expense_parser.add_subparsers(dest="command", required=True)
    expense_add = expense_sub.add_parser("add", help="Record an expense")
    expense_add.add_argument("category", choices=[c.value for c in ExpenseCategory])
    expense_add.add_argument("amount", type=_parse_amount)
    expense_add.add_argument("--description")
    expense_add.add_argument(
        "--method",
        choices=[m.value for m in PaymentMethod],
        default=PaymentMethod.CASH.value,
    )
    expense_add.add_argument("--date", type=_parse_date)
    expense_add.add_argument("--notes")
    expense_delete = expense_sub.add_parser("delete", help="Delete an expense")
    expense_delete.add_argument("id", type=int)

    stats_parser = subparsers.add_parser("stats", help="Dashboard figures")
    stats_parser.add_argument(
        "--period",
        choices=[p.value for p in Period],
        default=Period.MONTH.value,
        help="Period for the expense breakdown (default: month)",
    )

    dues_parser = subparsers.add_parser("dues", help="Customers who owe money")
    dues_parser.add_argument("--overdue-only", action="store_true")

    top_parser = subparsers.add_parser("top", help="Top customers by revenue")
    top_parser.add_argument("--limit", type=int)

    export_parser = subparsers.add_parser("export", help="Write a JSON backup")
    export_parser.add_argument("--output")

    return parser


HANDLERS = {
    "customer": handle_customer,
    "delivery": handle_delivery,
    "payment": handle_payment,
    "expense": handle_expense,
    "stats": handle_stats,
    "dues": handle_dues,
    "top": handle_top,
    "export": handle_export,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(get_settings().app.log_level if args.verbose else "WARNING")

    ledger, session = create_app_components(FileKeyValueStorage(args.data_dir))

    try:
        if args.entity == "login":
            logged_in = session.login(args.business_name, args.phone)
            print(f"Logged in as {logged_in.business_name}.")
            return 0
        if args.entity == "logout":
            session.logout()
            print("Logged out.")
            return 0
        handler = HANDLERS.get(args.entity)
        if handler is None:  # pragma: no cover - argparse should prevent this
            parser.error(f"Unknown entity: {args.entity}")
            return 2
        return handler(args, ledger)
    except RecordValidationError as exc:
        print(f"Validation error: {exc}", file=sys.stderr)
        return 1
    except RecordNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    except NotAuthenticatedError as exc:
        print(f"{exc}. Run 'waterledger login <business name>' first.", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
