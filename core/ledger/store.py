"""
Ledger 저장소

계정/분개 저장 및 조회, 잔액 집계용 조회.
모든 쿼리는 테넌트 스키마("{schema}.table")와 tenant_id 조건을 함께 사용.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from core.constants import Defaults
from core.errors import InvalidTransitionError, ReferentialIntegrityError
from core.ledger.models import ZERO, Account, AccountBalance, JournalEntry, JournalEntryLine
from core.ledger.types import AccountType, JournalEntryStatus, can_transition
from core.types import TenantScope
from core.utils.timezone import format_date, format_ts, parse_date, parse_ts

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

ACCOUNT_COLUMNS = (
    "id, tenant_id, code, name, account_type, parent_id, "
    "is_active, is_system, description, created_at"
)

ENTRY_COLUMNS = (
    "id, tenant_id, entry_number, entry_date, description, reference, "
    "source_type, source_id, status, posted_at, posted_by, "
    "voided_at, voided_by, void_reason, created_at, created_by"
)

LINE_COLUMNS = (
    "id, tenant_id, journal_entry_id, account_id, description, "
    "debit_amount, credit_amount, currency, exchange_rate, "
    "base_debit, base_credit, line_order"
)

# 잔액 집계 대상: 한 번이라도 전기된 분개.
# VOIDED 원본과 역분개가 함께 집계되어 상쇄된다. DRAFT는 제외.
BALANCE_STATUSES = (JournalEntryStatus.POSTED.value, JournalEntryStatus.VOIDED.value)


def format_entry_number(sequence: int) -> str:
    """분개 번호 생성 (JE-00001)"""
    return f"{Defaults.ENTRY_NUMBER_PREFIX}{sequence:0{Defaults.ENTRY_NUMBER_WIDTH}d}"


def _row_to_account(row: tuple[Any, ...]) -> Account:
    return Account(
        id=row[0],
        tenant_id=row[1],
        code=row[2],
        name=row[3],
        account_type=AccountType(row[4]),
        parent_id=row[5],
        is_active=bool(row[6]),
        is_system=bool(row[7]),
        description=row[8] or "",
        created_at=parse_ts(row[9]),
    )


def _row_to_entry(row: tuple[Any, ...]) -> JournalEntry:
    return JournalEntry(
        id=row[0],
        tenant_id=row[1],
        entry_number=row[2],
        entry_date=parse_date(row[3]),
        description=row[4],
        reference=row[5] or "",
        source_type=row[6] or "",
        source_id=row[7],
        status=JournalEntryStatus(row[8]),
        posted_at=parse_ts(row[9]),
        posted_by=row[10],
        voided_at=parse_ts(row[11]),
        voided_by=row[12],
        void_reason=row[13] or "",
        created_at=parse_ts(row[14]),
        created_by=row[15],
    )


def _row_to_line(row: tuple[Any, ...]) -> JournalEntryLine:
    return JournalEntryLine(
        id=row[0],
        tenant_id=row[1],
        journal_entry_id=row[2],
        account_id=row[3],
        description=row[4] or "",
        debit_amount=Decimal(row[5]),
        credit_amount=Decimal(row[6]),
        currency=row[7],
        exchange_rate=Decimal(row[8]),
        base_debit=Decimal(row[9]),
        base_credit=Decimal(row[10]),
        line_order=row[11],
    )


def _aggregate_balances(rows: list[tuple[Any, ...]]) -> list[AccountBalance]:
    """(account_id, code, name, type, base_debit, base_credit) 행을 계정별로 합산

    입력 행 순서대로 계정 순서 유지. 차대 합계가 모두 0인 계정은 제외.
    """
    balances: dict[str, AccountBalance] = {}
    for account_id, code, name, account_type, base_debit, base_credit in rows:
        balance = balances.get(account_id)
        if balance is None:
            balance = AccountBalance(
                account_id=account_id,
                account_code=code,
                account_name=name,
                account_type=AccountType(account_type),
            )
            balances[account_id] = balance
        balance.debit_balance += Decimal(base_debit)
        balance.credit_balance += Decimal(base_credit)

    result = []
    for balance in balances.values():
        if balance.debit_balance == ZERO and balance.credit_balance == ZERO:
            continue
        if balance.account_type.is_debit_normal:
            balance.net_balance = balance.debit_balance - balance.credit_balance
        else:
            balance.net_balance = balance.credit_balance - balance.debit_balance
        result.append(balance)
    return result


class LedgerStore:
    """Ledger 저장소

    계정과 분개를 저장하고 조회하는 클래스.
    잔액은 저장하지 않고 전기된 분개 라인(POSTED, VOIDED)에서 매번 계산.

    Args:
        db: SQLite 어댑터 (테넌트 스키마가 ATTACH된 상태)
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    # -------------------------------------------------------------------------
    # 계정
    # -------------------------------------------------------------------------

    async def get_account(self, scope: TenantScope, account_id: str) -> Account | None:
        """계정 단건 조회 (다른 테넌트 소유면 None)"""
        row = await self.db.fetchone(
            f"""
            SELECT {ACCOUNT_COLUMNS}
            FROM {scope.schema_name}.accounts
            WHERE id = ? AND tenant_id = ?
            """,
            (account_id, scope.tenant_id),
        )
        return _row_to_account(row) if row else None

    async def list_accounts(
        self,
        scope: TenantScope,
        active_only: bool = False,
    ) -> list[Account]:
        """계정 목록 조회 (코드 순)"""
        sql = f"""
            SELECT {ACCOUNT_COLUMNS}
            FROM {scope.schema_name}.accounts
            WHERE tenant_id = ?
        """
        if active_only:
            sql += " AND is_active = 1"
        sql += " ORDER BY code"

        rows = await self.db.fetchall(sql, (scope.tenant_id,))
        return [_row_to_account(row) for row in rows]

    async def get_account_parent(
        self,
        scope: TenantScope,
        account_id: str,
    ) -> tuple[bool, str | None]:
        """계층 검사용 (존재 여부, parent_id) 조회"""
        row = await self.db.fetchone(
            f"""
            SELECT parent_id FROM {scope.schema_name}.accounts
            WHERE id = ? AND tenant_id = ?
            """,
            (account_id, scope.tenant_id),
        )
        if row is None:
            return False, None
        return True, row[0]

    async def insert_account(self, scope: TenantScope, account: Account) -> None:
        """계정 저장

        Raises:
            ReferentialIntegrityError: 코드 중복 등 제약 위반
        """
        async with self.db.transaction():
            await self.db.execute(
                f"""
                INSERT INTO {scope.schema_name}.accounts ({ACCOUNT_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    account.id,
                    scope.tenant_id,
                    account.code,
                    account.name,
                    account.account_type.value,
                    account.parent_id,
                    int(account.is_active),
                    int(account.is_system),
                    account.description,
                    format_ts(account.created_at),
                ),
            )

    # -------------------------------------------------------------------------
    # 분개
    # -------------------------------------------------------------------------

    async def next_entry_number(self, scope: TenantScope) -> str:
        """다음 분개 번호 (숫자 접미사 최대값 + 1)

        쓰기 트랜잭션 안에서 호출해야 한다.
        """
        prefix_len = len(Defaults.ENTRY_NUMBER_PREFIX)
        row = await self.db.fetchone(
            f"""
            SELECT COALESCE(MAX(CAST(SUBSTR(entry_number, {prefix_len + 1}) AS INTEGER)), 0)
            FROM {scope.schema_name}.journal_entries
            WHERE tenant_id = ? AND entry_number LIKE ?
            """,
            (scope.tenant_id, f"{Defaults.ENTRY_NUMBER_PREFIX}%"),
        )
        return format_entry_number(int(row[0]) + 1 if row else 1)

    async def insert_entry(self, scope: TenantScope, entry: JournalEntry) -> JournalEntry:
        """분개 + 라인 저장 (하나의 트랜잭션)

        분개 번호는 트랜잭션 안에서 할당.
        (tenant_id, entry_number) 중복이면 번호를 다시 계산해 한 번만 재시도.

        Args:
            scope: 테넌트 범위
            entry: 저장할 분개 (entry_number는 여기서 채워짐)

        Returns:
            번호가 할당된 분개

        Raises:
            ReferentialIntegrityError: 존재하지 않는 계정 참조, 번호 재충돌
        """
        async with self.db.transaction():
            entry.entry_number = await self.next_entry_number(scope)
            try:
                await self._insert_entry_header(scope, entry)
            except ReferentialIntegrityError as e:
                if "entry_number" not in e.message:
                    raise
                logger.warning(
                    "분개 번호 충돌, 재할당 후 재시도",
                    extra={"tenant_id": scope.tenant_id, "entry_number": entry.entry_number},
                )
                entry.entry_number = await self.next_entry_number(scope)
                await self._insert_entry_header(scope, entry)

            await self.db.executemany(
                f"""
                INSERT INTO {scope.schema_name}.journal_entry_lines ({LINE_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        line.id,
                        scope.tenant_id,
                        entry.id,
                        line.account_id,
                        line.description,
                        str(line.debit_amount),
                        str(line.credit_amount),
                        line.currency,
                        str(line.exchange_rate),
                        str(line.base_debit),
                        str(line.base_credit),
                        line.line_order,
                    )
                    for line in entry.lines
                ],
            )

        logger.debug(
            f"Saved journal entry: {entry.entry_number}",
            extra={"tenant_id": scope.tenant_id, "entry_id": entry.id},
        )
        return entry

    async def _insert_entry_header(self, scope: TenantScope, entry: JournalEntry) -> None:
        await self.db.execute(
            f"""
            INSERT INTO {scope.schema_name}.journal_entries ({ENTRY_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                entry.id,
                scope.tenant_id,
                entry.entry_number,
                format_date(entry.entry_date),
                entry.description,
                entry.reference,
                entry.source_type,
                entry.source_id,
                entry.status.value,
                format_ts(entry.posted_at),
                entry.posted_by,
                format_ts(entry.voided_at),
                entry.voided_by,
                entry.void_reason,
                format_ts(entry.created_at),
                entry.created_by,
            ),
        )

    async def get_entry(self, scope: TenantScope, entry_id: str) -> JournalEntry | None:
        """분개 단건 조회 (라인 포함, line_order 순)

        Returns:
            분개 (없거나 다른 테넌트 소유면 None)
        """
        row = await self.db.fetchone(
            f"""
            SELECT {ENTRY_COLUMNS}
            FROM {scope.schema_name}.journal_entries
            WHERE id = ? AND tenant_id = ?
            """,
            (entry_id, scope.tenant_id),
        )
        if not row:
            return None

        entry = _row_to_entry(row)
        lines = await self.db.fetchall(
            f"""
            SELECT {LINE_COLUMNS}
            FROM {scope.schema_name}.journal_entry_lines
            WHERE journal_entry_id = ? AND tenant_id = ?
            ORDER BY line_order
            """,
            (entry_id, scope.tenant_id),
        )
        entry.lines = [_row_to_line(line) for line in lines]
        return entry

    async def list_entries(
        self,
        scope: TenantScope,
        status: JournalEntryStatus | None = None,
        source_type: str | None = None,
        source_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[JournalEntry]:
        """분개 목록 조회 (헤더만, 분개 번호 순)"""
        sql = f"""
            SELECT {ENTRY_COLUMNS}
            FROM {scope.schema_name}.journal_entries
            WHERE tenant_id = ?
        """
        params: list[Any] = [scope.tenant_id]
        if status is not None:
            sql += " AND status = ?"
            params.append(status.value)
        if source_type is not None:
            sql += " AND source_type = ?"
            params.append(source_type)
        if source_id is not None:
            sql += " AND source_id = ?"
            params.append(source_id)
        sql += " ORDER BY entry_number LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        rows = await self.db.fetchall(sql, tuple(params))
        return [_row_to_entry(row) for row in rows]

    async def get_line(
        self,
        scope: TenantScope,
        line_id: str,
    ) -> tuple[JournalEntryLine, JournalEntryStatus] | None:
        """분개 라인 단건 조회 (소속 분개 상태 포함)"""
        columns = ", ".join(f"l.{c.strip()}" for c in LINE_COLUMNS.split(","))
        row = await self.db.fetchone(
            f"""
            SELECT {columns}, e.status
            FROM {scope.schema_name}.journal_entry_lines l
            JOIN {scope.schema_name}.journal_entries e ON e.id = l.journal_entry_id
            WHERE l.id = ? AND l.tenant_id = ? AND e.tenant_id = ?
            """,
            (line_id, scope.tenant_id, scope.tenant_id),
        )
        if not row:
            return None
        return _row_to_line(row[:-1]), JournalEntryStatus(row[-1])

    async def mark_posted(
        self,
        scope: TenantScope,
        entry_id: str,
        user_id: str,
        posted_at: datetime,
    ) -> int:
        """DRAFT → POSTED 조건부 업데이트

        Returns:
            변경된 행 수 (0이면 이미 다른 상태)
        """
        async with self.db.transaction():
            cursor = await self.db.execute(
                f"""
                UPDATE {scope.schema_name}.journal_entries
                SET status = ?, posted_at = ?, posted_by = ?
                WHERE id = ? AND tenant_id = ? AND status = ?
                """,
                (
                    JournalEntryStatus.POSTED.value,
                    format_ts(posted_at),
                    user_id,
                    entry_id,
                    scope.tenant_id,
                    JournalEntryStatus.DRAFT.value,
                ),
            )
        return cursor.rowcount

    async def mark_voided(
        self,
        scope: TenantScope,
        entry_id: str,
        user_id: str,
        reason: str,
        voided_at: datetime,
    ) -> int:
        """POSTED → VOIDED 조건부 업데이트

        Returns:
            변경된 행 수 (0이면 이미 다른 상태)
        """
        async with self.db.transaction():
            cursor = await self.db.execute(
                f"""
                UPDATE {scope.schema_name}.journal_entries
                SET status = ?, voided_at = ?, voided_by = ?, void_reason = ?
                WHERE id = ? AND tenant_id = ? AND status = ?
                """,
                (
                    JournalEntryStatus.VOIDED.value,
                    format_ts(voided_at),
                    user_id,
                    reason,
                    entry_id,
                    scope.tenant_id,
                    JournalEntryStatus.POSTED.value,
                ),
            )
        return cursor.rowcount

    async def update_entry_status(
        self,
        scope: TenantScope,
        entry_id: str,
        target: JournalEntryStatus,
        user_id: str,
        clock: Callable[[], datetime],
    ) -> None:
        """범용 상태 변경 (POSTED만 허용)

        VOIDED는 취소 분개가 함께 생성되어야 하므로 void 경로로만 가능.

        Raises:
            InvalidTransitionError: 지원하지 않는 대상 상태, 또는 DRAFT가 아닌 분개
        """
        # 부수 효과 없이 DRAFT에서 바로 갈 수 있는 상태만
        if not can_transition(JournalEntryStatus.DRAFT, target):
            raise InvalidTransitionError(
                "update status to an unsupported target",
                entry_id=entry_id,
                target=target.value,
            )

        updated = await self.mark_posted(scope, entry_id, user_id, clock())
        if updated == 0:
            raise InvalidTransitionError(
                "only draft entries can be posted",
                entry_id=entry_id,
                target=target.value,
            )

    # -------------------------------------------------------------------------
    # 잔액 집계 (POSTED + VOIDED 분개)
    # -------------------------------------------------------------------------

    async def get_account_totals(
        self,
        scope: TenantScope,
        account_id: str,
        as_of: date,
    ) -> tuple[Decimal, Decimal]:
        """계정의 기준 통화 차변/대변 누계 (as_of 포함)"""
        schema = scope.schema_name
        rows = await self.db.fetchall(
            f"""
            SELECT l.base_debit, l.base_credit
            FROM {schema}.journal_entry_lines l
            JOIN {schema}.journal_entries e ON e.id = l.journal_entry_id
            WHERE l.account_id = ?
              AND l.tenant_id = ? AND e.tenant_id = ?
              AND e.status IN (?, ?)
              AND e.entry_date <= ?
            """,
            (
                account_id,
                scope.tenant_id,
                scope.tenant_id,
                *BALANCE_STATUSES,
                format_date(as_of),
            ),
        )
        debits = sum((Decimal(row[0]) for row in rows), ZERO)
        credits = sum((Decimal(row[1]) for row in rows), ZERO)
        return debits, credits

    async def get_trial_balance_rows(
        self,
        scope: TenantScope,
        as_of: date,
    ) -> list[AccountBalance]:
        """계정별 누계 잔액 (as_of 포함, 활동 없는 계정 제외, 코드 순)"""
        schema = scope.schema_name
        rows = await self.db.fetchall(
            f"""
            SELECT a.id, a.code, a.name, a.account_type, l.base_debit, l.base_credit
            FROM {schema}.accounts a
            JOIN {schema}.journal_entry_lines l ON l.account_id = a.id
            JOIN {schema}.journal_entries e ON e.id = l.journal_entry_id
            WHERE a.tenant_id = ? AND l.tenant_id = ? AND e.tenant_id = ?
              AND e.status IN (?, ?)
              AND e.entry_date <= ?
            ORDER BY a.code
            """,
            (
                scope.tenant_id,
                scope.tenant_id,
                scope.tenant_id,
                *BALANCE_STATUSES,
                format_date(as_of),
            ),
        )
        return _aggregate_balances(rows)

    async def get_period_balance_rows(
        self,
        scope: TenantScope,
        start: date,
        end: date,
    ) -> list[AccountBalance]:
        """수익/비용 계정의 기간 발생액 (start ≤ entry_date ≤ end)

        REVENUE 먼저, 그다음 EXPENSE, 각 그룹 내 코드 순.
        """
        schema = scope.schema_name
        rows = await self.db.fetchall(
            f"""
            SELECT a.id, a.code, a.name, a.account_type, l.base_debit, l.base_credit
            FROM {schema}.accounts a
            JOIN {schema}.journal_entry_lines l ON l.account_id = a.id
            JOIN {schema}.journal_entries e ON e.id = l.journal_entry_id
            WHERE a.tenant_id = ? AND l.tenant_id = ? AND e.tenant_id = ?
              AND a.account_type IN (?, ?)
              AND e.status IN (?, ?)
              AND e.entry_date >= ? AND e.entry_date <= ?
            ORDER BY CASE a.account_type WHEN ? THEN 0 ELSE 1 END, a.code
            """,
            (
                scope.tenant_id,
                scope.tenant_id,
                scope.tenant_id,
                AccountType.REVENUE.value,
                AccountType.EXPENSE.value,
                *BALANCE_STATUSES,
                format_date(start),
                format_date(end),
                AccountType.REVENUE.value,
            ),
        )
        return _aggregate_balances(rows)
