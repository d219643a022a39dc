#!/usr/bin/env python3
"""Logifin CLI

Single entry point for the analytics and treasury operations:
- logifin summary: KPI snapshot for a period
- logifin revenue: monthly revenue evolution
- logifin treasury: daily CFA balance evolution
- logifin dashboard: role-filtered dashboard pass
- logifin convert: CFA/MAD conversion
- logifin transfer: compose and submit an inter-account transfer
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any, Optional, Sequence

from dotenv import load_dotenv
from pydantic import BaseModel

from logifin.domain.currency import convert
from logifin.domain.errors import LogifinError, TransferValidationError
from logifin.domain.mappers import transfer_instruction_to_dict
from logifin.domain.periods import resolve
from logifin.domain.value_objects import Money, Period
from logifin.shared.config import load_config
from logifin.shared.dependency_injection import Container
from logifin.shared.logging import get_logger

PERIOD_CHOICES = [period.value for period in Period]


def _emit(payload: Any, stream=None) -> None:
    stream = stream or sys.stdout
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(mode="json")
    stream.write(json.dumps(payload, indent=2, ensure_ascii=False, default=str) + "\n")


def run_summary(args: argparse.Namespace, container: Container) -> int:
    engine = container.aggregation_engine()
    date_range = resolve(args.period, container.clock()())
    summary = engine.summarize(date_range, rate=args.rate)
    _emit(summary)
    return 0


def run_revenue(args: argparse.Namespace, container: Container) -> int:
    engine = container.aggregation_engine()
    series = engine.revenue_evolution(months=args.months, rate=args.rate)
    if args.table:
        print(series.to_frame().to_string())
    else:
        _emit(series)
    return 0


def run_treasury(args: argparse.Namespace, container: Container) -> int:
    engine = container.aggregation_engine()
    series = engine.treasury_evolution(days=args.days, account_id=args.account_id)
    if args.table:
        print(series.to_frame().to_string())
    else:
        _emit(series)
    return 0


def run_dashboard(args: argparse.Namespace, container: Container) -> int:
    service = container.dashboard_service()
    snapshot = service.refresh(args.period, args.roles)
    _emit(snapshot)
    return 0


def run_convert(args: argparse.Namespace, container: Container) -> int:
    rate = args.rate if args.rate is not None else container.rate_provider().current()
    result = convert(Money.of(args.amount, args.from_currency), args.to_currency, rate)
    _emit({"amount": str(result.amount), "currency": result.currency.value})
    return 0


def run_transfer(args: argparse.Namespace, container: Container) -> int:
    use_case = container.transfer_use_case()
    form = use_case.prepare(
        args.source_account,
        args.destination_account,
        args.amount,
        rate=args.rate,
        description=args.description or "",
    )
    if args.dry_run:
        _emit(transfer_instruction_to_dict(form.build_instruction()))
        return 0
    response = use_case.submit(form)
    _emit({"success": response.success, "message": response.message})
    return 0


HANDLERS = {
    "summary": run_summary,
    "revenue": run_revenue,
    "treasury": run_treasury,
    "dashboard": run_dashboard,
    "convert": run_convert,
    "transfer": run_transfer,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="logifin",
        description="Logifin analytics CLI - KPIs, revenue/treasury series and transfers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to config.yaml (default: config/config.yaml in the repository)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    summary_parser = subparsers.add_parser("summary", help="KPI snapshot for a period")
    summary_parser.add_argument("--period", choices=PERIOD_CHOICES, default="month")
    summary_parser.add_argument("--rate", type=str, help="Override the MAD/CFA exchange rate")

    revenue_parser = subparsers.add_parser("revenue", help="Monthly revenue evolution")
    revenue_parser.add_argument("--months", type=int, help="Number of months (default from config)")
    revenue_parser.add_argument("--rate", type=str, help="Override the MAD/CFA exchange rate")
    revenue_parser.add_argument("--table", action="store_true", help="Print a table instead of JSON")

    treasury_parser = subparsers.add_parser("treasury", help="Daily CFA balance evolution")
    treasury_parser.add_argument("--days", type=int, help="Number of days (default from config)")
    treasury_parser.add_argument("--account-id", type=int, help="Restrict to one account")
    treasury_parser.add_argument("--table", action="store_true", help="Print a table instead of JSON")

    dashboard_parser = subparsers.add_parser("dashboard", help="Role-filtered dashboard pass")
    dashboard_parser.add_argument("--period", choices=PERIOD_CHOICES, default="month")
    dashboard_parser.add_argument("--roles", nargs="+", default=["admin"], help="Caller roles")

    convert_parser = subparsers.add_parser("convert", help="Convert an amount between CFA and MAD")
    convert_parser.add_argument("amount", type=str)
    convert_parser.add_argument("--from", dest="from_currency", required=True)
    convert_parser.add_argument("--to", dest="to_currency", required=True)
    convert_parser.add_argument("--rate", type=str, help="Exchange rate (1 MAD = rate CFA)")

    transfer_parser = subparsers.add_parser("transfer", help="Transfer between treasury accounts")
    transfer_parser.add_argument("--source-account", type=int, required=True)
    transfer_parser.add_argument("--destination-account", type=int, required=True)
    transfer_parser.add_argument("--amount", type=str, required=True)
    transfer_parser.add_argument("--rate", type=str, help="Override the exchange rate for this transfer")
    transfer_parser.add_argument("--description", type=str)
    transfer_parser.add_argument("--dry-run", action="store_true", help="Print the instruction without submitting")

    return parser


def main(argv: Optional[Sequence[str]] = None, container: Optional[Container] = None) -> int:
    """Main entry point for the CLI.

    Returns:
        Exit code (0 on success, 1 on errors)
    """
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        if container is None:
            if args.config:
                os.environ["LOGIFIN_CONFIG_FILE"] = args.config
            config = load_config(reload=True)
            get_logger("logifin", config.model_dump())
            container = Container()
        return HANDLERS[args.command](args, container)
    except TransferValidationError as exc:
        for field, message in sorted(exc.errors.items()):
            print(f"{field}: {message}", file=sys.stderr)
        return 1
    except (LogifinError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
