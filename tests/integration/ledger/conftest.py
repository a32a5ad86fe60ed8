"""
Ledger 통합 테스트 fixture

임시 SQLite DB + ATTACH된 테넌트 스키마 + 기본 계정과목
"""

from collections.abc import AsyncIterator, Awaitable, Callable
from datetime import date, datetime
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.ledger.cost_centers import CostCenterService
from core.ledger.models import Account, JournalEntry
from core.ledger.reports import ReportService
from core.ledger.requests import (
    CreateAccountRequest,
    CreateJournalEntryLineRequest,
    CreateJournalEntryRequest,
)
from core.ledger.schema import attach_tenant
from core.ledger.service import LedgerService
from core.ledger.types import AccountType
from core.types import TenantScope

USER_ID = "user-1"

CHART_OF_ACCOUNTS = [
    ("1000", "Cash", AccountType.ASSET),
    ("1100", "Bank", AccountType.ASSET),
    ("2000", "Accounts Payable", AccountType.LIABILITY),
    ("3000", "Share Capital", AccountType.EQUITY),
    ("4000", "Sales Revenue", AccountType.REVENUE),
    ("5000", "Office Expense", AccountType.EXPENSE),
]


@pytest_asyncio.fixture
async def db(tmp_path: Path) -> AsyncIterator[SQLiteAdapter]:
    """테스트용 임시 DB"""
    adapter = SQLiteAdapter(tmp_path / "ledger.db")
    await adapter.connect()
    yield adapter
    await adapter.close()


@pytest_asyncio.fixture
async def tenant(db: SQLiteAdapter, tmp_path: Path) -> TenantScope:
    """ATTACH + 스키마 초기화된 테넌트"""
    scope = TenantScope.create("tenant-acme", "tenant_acme", "EUR")
    await attach_tenant(db, scope, tmp_path / "tenants")
    return scope


@pytest.fixture
def user_id() -> str:
    return USER_ID


@pytest.fixture
def ledger(db: SQLiteAdapter, clock: Callable[[], datetime]) -> LedgerService:
    return LedgerService(db, clock=clock)


@pytest.fixture
def reports(ledger: LedgerService, clock: Callable[[], datetime]) -> ReportService:
    return ReportService(ledger.store, clock=clock)


@pytest.fixture
def cost_centers(
    db: SQLiteAdapter,
    ledger: LedgerService,
    clock: Callable[[], datetime],
) -> CostCenterService:
    return CostCenterService(db, ledger_store=ledger.store, clock=clock)


@pytest_asyncio.fixture
async def accounts(ledger: LedgerService, tenant: TenantScope) -> dict[str, Account]:
    """기본 계정과목 (이름 → Account)"""
    created = {}
    for code, name, account_type in CHART_OF_ACCOUNTS:
        account = await ledger.create_account(
            tenant,
            CreateAccountRequest(code=code, name=name, account_type=account_type),
        )
        created[name] = account
    return created


@pytest.fixture
def make_request(today: date, user_id: str) -> Callable[..., CreateJournalEntryRequest]:
    """분개 생성 요청 factory

    lines: [{"account_id": ..., "debit_amount": "100"}, ...]
    """

    def _make(
        lines: list[dict[str, Any]],
        entry_date: date | None = None,
        description: str = "Test entry",
        **fields: Any,
    ) -> CreateJournalEntryRequest:
        return CreateJournalEntryRequest(
            entry_date=entry_date or today,
            description=description,
            user_id=user_id,
            lines=[CreateJournalEntryLineRequest(**line) for line in lines],
            **fields,
        )

    return _make


@pytest.fixture
def posted_entry(
    ledger: LedgerService,
    tenant: TenantScope,
    make_request: Callable[..., CreateJournalEntryRequest],
    user_id: str,
) -> Callable[..., Awaitable[JournalEntry]]:
    """분개 생성 + 전기 factory"""

    async def _post(lines: list[dict[str, Any]], **kwargs: Any) -> JournalEntry:
        entry = await ledger.create_entry(tenant, make_request(lines, **kwargs))
        await ledger.post_entry(tenant, entry.id, user_id)
        return await ledger.get_entry(tenant, entry.id)

    return _post
