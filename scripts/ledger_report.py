"""
Ledger 보고서 출력

사용법:
    python -m scripts.ledger_report --tenant-id acme --schema tenant_acme trial-balance
    python -m scripts.ledger_report --tenant-id acme --schema tenant_acme balance-sheet --as-of 2026-03-31
    python -m scripts.ledger_report --tenant-id acme --schema tenant_acme income-statement \\
        --start 2026-01-01 --end 2026-03-31
    python -m scripts.ledger_report --tenant-id acme --schema tenant_acme cost-centers \\
        --start 2026-01-01 --end 2026-12-31
"""

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence
from datetime import date
from decimal import Decimal
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import ConfigLoadError, LedgerConfig, get_settings
from core.errors import LedgerError
from core.ledger.cost_centers import CostCenterReport, CostCenterService
from core.ledger.models import AccountBalance
from core.ledger.reports import BalanceSheet, IncomeStatement, ReportService, TrialBalance
from core.ledger.schema import attach_tenant
from core.ledger.store import LedgerStore
from core.logging import setup_logging
from core.types import TenantScope

logger = logging.getLogger(__name__)

REPORTS = ("trial-balance", "balance-sheet", "income-statement", "cost-centers")


def _amount(value: Decimal) -> str:
    return f"{value:>18,.2f}"


def _rows(balances: list[AccountBalance]) -> list[str]:
    return [
        f"  {b.account_code:<10} {b.account_name:<30} "
        f"{_amount(b.debit_balance)} {_amount(b.credit_balance)} {_amount(b.net_balance)}"
        for b in balances
    ]


def render_trial_balance(report: TrialBalance) -> str:
    """시산표 텍스트"""
    lines = [
        f"Trial Balance - {report.tenant_id} as of {report.as_of_date.isoformat()}",
        f"  {'Code':<10} {'Account':<30} {'Debit':>18} {'Credit':>18} {'Net':>18}",
        *_rows(report.accounts),
        f"  {'Total':<41} {_amount(report.total_debits)} {_amount(report.total_credits)}",
        f"  Balanced: {'yes' if report.is_balanced else 'NO'}",
    ]
    return "\n".join(lines)


def render_balance_sheet(report: BalanceSheet) -> str:
    """재무상태표 텍스트"""
    lines = [f"Balance Sheet - {report.tenant_id} as of {report.as_of_date.isoformat()}"]
    for title, section, total in (
        ("Assets", report.assets, report.total_assets),
        ("Liabilities", report.liabilities, report.total_liabilities),
        ("Equity", report.equity, report.total_equity - report.retained_earnings),
    ):
        lines.append(f"{title}")
        lines.extend(f"  {b.account_code:<10} {b.account_name:<30} {_amount(b.net_balance)}" for b in section)
        lines.append(f"  {'Total ' + title:<41} {_amount(total)}")
    lines.append(f"  {'Retained earnings':<41} {_amount(report.retained_earnings)}")
    lines.append(f"  {'Total equity':<41} {_amount(report.total_equity)}")
    lines.append(f"  Balanced: {'yes' if report.is_balanced else 'NO'}")
    return "\n".join(lines)


def render_income_statement(report: IncomeStatement) -> str:
    """손익계산서 텍스트"""
    lines = [
        f"Income Statement - {report.tenant_id} "
        f"{report.start_date.isoformat()} .. {report.end_date.isoformat()}",
        "Revenue",
        *(f"  {b.account_code:<10} {b.account_name:<30} {_amount(b.net_balance)}" for b in report.revenue),
        f"  {'Total revenue':<41} {_amount(report.total_revenue)}",
        "Expenses",
        *(f"  {b.account_code:<10} {b.account_name:<30} {_amount(b.net_balance)}" for b in report.expenses),
        f"  {'Total expenses':<41} {_amount(report.total_expenses)}",
        f"  {'Net income':<41} {_amount(report.net_income)}",
    ]
    return "\n".join(lines)


def render_cost_centers(report: CostCenterReport) -> str:
    """코스트센터 보고서 텍스트"""
    lines = [
        f"Cost Centers - {report.tenant_id} "
        f"{report.period_start.isoformat()} .. {report.period_end.isoformat()}",
        f"  {'Code':<10} {'Name':<30} {'Expenses':>18} {'Budget':>18} {'Used %':>8}",
    ]
    for summary in report.cost_centers:
        flag = " OVER" if summary.is_over_budget else ""
        lines.append(
            f"  {summary.cost_center.code:<10} {summary.cost_center.name:<30} "
            f"{_amount(summary.total_expenses)} {_amount(summary.budget_amount)} "
            f"{summary.budget_used_percentage:>8.2f}{flag}"
        )
    lines.append(
        f"  {'Total':<41} {_amount(report.total_expenses)} {_amount(report.total_budget)}"
    )
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Ledger 보고서 출력")
    parser.add_argument("report", choices=REPORTS, help="보고서 종류")
    parser.add_argument("--tenant-id", required=True, help="테넌트 ID")
    parser.add_argument("--schema", required=True, help="테넌트 스키마 이름")
    parser.add_argument("--as-of", type=date.fromisoformat, default=None, help="기준일 (기본: 오늘)")
    parser.add_argument("--start", type=date.fromisoformat, default=None, help="기간 시작일")
    parser.add_argument("--end", type=date.fromisoformat, default=None, help="기간 종료일")
    parser.add_argument("--config", type=Path, default=None, help="ledger.yaml 경로")
    return parser


async def generate(config: LedgerConfig, args: argparse.Namespace) -> str:
    """보고서 생성 후 텍스트 반환

    Raises:
        LedgerError: 인자 오류 또는 조회 실패
    """
    tenant = TenantScope.create(args.tenant_id, args.schema, config.base_currency)
    today = date.today()

    async with SQLiteAdapter(config.db_path) as db:
        await attach_tenant(db, tenant, config.tenants_dir)
        store = LedgerStore(db)

        if args.report == "trial-balance":
            return render_trial_balance(
                await ReportService(store).trial_balance(tenant, args.as_of or today)
            )
        if args.report == "balance-sheet":
            return render_balance_sheet(
                await ReportService(store).balance_sheet(tenant, args.as_of or today)
            )

        start = args.start or today.replace(month=1, day=1)
        end = args.end or today
        if args.report == "income-statement":
            return render_income_statement(
                await ReportService(store).income_statement(tenant, start, end)
            )
        return render_cost_centers(
            await CostCenterService(db, ledger_store=store).report(tenant, start, end)
        )


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = get_settings(args.config).config
    except ConfigLoadError as e:
        print(f"설정 로드 실패: {e}", file=sys.stderr)
        return 2

    setup_logging("ledger_report", console_level=logging.WARNING, file_level=config.log_level_value)

    try:
        output = asyncio.run(generate(config, args))
    except LedgerError as e:
        logger.error(f"보고서 생성 실패: {e.message}", extra=e.details)
        print(f"오류: {e.message}", file=sys.stderr)
        return 1

    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
