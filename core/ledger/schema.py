"""
테넌트 스키마 초기화

테넌트 DB(ATTACH된 스키마)에 Ledger 테이블과 인덱스 생성.
CREATE IF NOT EXISTS 패턴으로 반복 호출해도 안전하게 동작.

금액 컬럼은 Decimal 문자열(TEXT)로 저장하여 정밀도 손실 없음.
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from adapters.db.sqlite_adapter import get_tenant_db_path
from core.types import TenantScope

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

# 스키마 내 테이블 이름
TENANT_TABLES = (
    "accounts",
    "journal_entries",
    "journal_entry_lines",
    "cost_centers",
    "cost_allocations",
)


async def attach_tenant(
    db: "SQLiteAdapter",
    tenant: TenantScope,
    tenants_dir: Path | str | None = None,
) -> None:
    """테넌트 DB ATTACH 후 스키마 초기화

    Args:
        db: SQLiteAdapter 인스턴스 (연결된 상태)
        tenant: 테넌트 범위
        tenants_dir: 테넌트 DB 디렉토리 (None이면 기본 경로)
    """
    await db.attach_schema(
        tenant.schema_name,
        get_tenant_db_path(tenant.schema_name, tenants_dir),
    )
    await init_tenant_schema(db, tenant)


async def init_tenant_schema(db: "SQLiteAdapter", tenant: TenantScope) -> None:
    """테넌트 Ledger 스키마 초기화 (테이블 + 인덱스)

    Args:
        db: SQLiteAdapter 인스턴스 (테넌트 스키마가 ATTACH된 상태)
        tenant: 테넌트 범위
    """
    schema = tenant.schema_name

    # accounts 테이블
    await db.execute(f"""
        CREATE TABLE IF NOT EXISTS {schema}.accounts (
            id               TEXT PRIMARY KEY,
            tenant_id        TEXT NOT NULL,
            code             TEXT NOT NULL,
            name             TEXT NOT NULL,
            account_type     TEXT NOT NULL
                CHECK (account_type IN ('ASSET', 'LIABILITY', 'EQUITY', 'REVENUE', 'EXPENSE')),
            parent_id        TEXT REFERENCES accounts(id),
            is_active        INTEGER NOT NULL DEFAULT 1,
            is_system        INTEGER NOT NULL DEFAULT 0,
            description      TEXT NOT NULL DEFAULT '',
            created_at       TEXT NOT NULL,
            UNIQUE(tenant_id, code)
        )
    """)

    # journal_entries 테이블
    await db.execute(f"""
        CREATE TABLE IF NOT EXISTS {schema}.journal_entries (
            id               TEXT PRIMARY KEY,
            tenant_id        TEXT NOT NULL,
            entry_number     TEXT NOT NULL,
            entry_date       TEXT NOT NULL,
            description      TEXT NOT NULL,
            reference        TEXT NOT NULL DEFAULT '',
            source_type      TEXT NOT NULL DEFAULT '',
            source_id        TEXT,
            status           TEXT NOT NULL DEFAULT 'DRAFT'
                CHECK (status IN ('DRAFT', 'POSTED', 'VOIDED')),
            posted_at        TEXT,
            posted_by        TEXT,
            voided_at        TEXT,
            voided_by        TEXT,
            void_reason      TEXT NOT NULL DEFAULT '',
            created_at       TEXT NOT NULL,
            created_by       TEXT NOT NULL,
            UNIQUE(tenant_id, entry_number)
        )
    """)

    # journal_entry_lines 테이블
    await db.execute(f"""
        CREATE TABLE IF NOT EXISTS {schema}.journal_entry_lines (
            id               TEXT PRIMARY KEY,
            tenant_id        TEXT NOT NULL,
            journal_entry_id TEXT NOT NULL REFERENCES journal_entries(id) ON DELETE CASCADE,
            account_id       TEXT NOT NULL REFERENCES accounts(id),
            description      TEXT NOT NULL DEFAULT '',
            debit_amount     TEXT NOT NULL DEFAULT '0',
            credit_amount    TEXT NOT NULL DEFAULT '0',
            currency         TEXT NOT NULL,
            exchange_rate    TEXT NOT NULL DEFAULT '1',
            base_debit       TEXT NOT NULL DEFAULT '0',
            base_credit      TEXT NOT NULL DEFAULT '0',
            line_order       INTEGER NOT NULL DEFAULT 0,
            CHECK (CAST(debit_amount AS REAL) >= 0 AND CAST(credit_amount AS REAL) >= 0),
            CHECK (NOT (CAST(debit_amount AS REAL) > 0 AND CAST(credit_amount AS REAL) > 0))
        )
    """)

    # cost_centers 테이블
    await db.execute(f"""
        CREATE TABLE IF NOT EXISTS {schema}.cost_centers (
            id               TEXT PRIMARY KEY,
            tenant_id        TEXT NOT NULL,
            code             TEXT NOT NULL,
            name             TEXT NOT NULL,
            description      TEXT NOT NULL DEFAULT '',
            parent_id        TEXT,
            is_active        INTEGER NOT NULL DEFAULT 1,
            budget_amount    TEXT,
            budget_period    TEXT NOT NULL DEFAULT 'ANNUAL'
                CHECK (budget_period IN ('MONTHLY', 'QUARTERLY', 'ANNUAL')),
            created_at       TEXT NOT NULL,
            updated_at       TEXT NOT NULL,
            UNIQUE(tenant_id, code)
        )
    """)

    # cost_allocations 테이블 (삭제 가능 여부는 서비스에서 사전 검사)
    await db.execute(f"""
        CREATE TABLE IF NOT EXISTS {schema}.cost_allocations (
            id                    TEXT PRIMARY KEY,
            tenant_id             TEXT NOT NULL,
            cost_center_id        TEXT NOT NULL,
            journal_entry_line_id TEXT NOT NULL,
            amount                TEXT NOT NULL,
            allocation_percentage TEXT,
            allocation_date       TEXT NOT NULL,
            notes                 TEXT NOT NULL DEFAULT '',
            created_at            TEXT NOT NULL
        )
    """)

    # 인덱스
    await db.execute(f"CREATE INDEX IF NOT EXISTS {schema}.idx_accounts_tenant ON accounts(tenant_id)")
    await db.execute(f"CREATE INDEX IF NOT EXISTS {schema}.idx_accounts_type ON accounts(account_type)")
    await db.execute(f"CREATE INDEX IF NOT EXISTS {schema}.idx_accounts_parent ON accounts(parent_id)")
    await db.execute(f"CREATE INDEX IF NOT EXISTS {schema}.idx_je_tenant ON journal_entries(tenant_id)")
    await db.execute(f"CREATE INDEX IF NOT EXISTS {schema}.idx_je_date ON journal_entries(entry_date)")
    await db.execute(f"CREATE INDEX IF NOT EXISTS {schema}.idx_je_status ON journal_entries(status)")
    await db.execute(f"CREATE INDEX IF NOT EXISTS {schema}.idx_je_source ON journal_entries(source_type, source_id)")
    await db.execute(f"CREATE INDEX IF NOT EXISTS {schema}.idx_jel_entry ON journal_entry_lines(journal_entry_id)")
    await db.execute(f"CREATE INDEX IF NOT EXISTS {schema}.idx_jel_account ON journal_entry_lines(account_id)")
    await db.execute(f"CREATE INDEX IF NOT EXISTS {schema}.idx_cost_centers_tenant ON cost_centers(tenant_id)")
    await db.execute(f"CREATE INDEX IF NOT EXISTS {schema}.idx_cost_centers_parent ON cost_centers(parent_id)")
    await db.execute(f"CREATE INDEX IF NOT EXISTS {schema}.idx_cost_centers_active ON cost_centers(tenant_id, is_active)")
    await db.execute(f"CREATE INDEX IF NOT EXISTS {schema}.idx_cost_alloc_center ON cost_allocations(cost_center_id)")
    await db.execute(f"CREATE INDEX IF NOT EXISTS {schema}.idx_cost_alloc_date ON cost_allocations(allocation_date)")
    await db.execute(f"CREATE INDEX IF NOT EXISTS {schema}.idx_cost_alloc_line ON cost_allocations(journal_entry_line_id)")

    await db.commit()
    logger.info(
        "테넌트 스키마 초기화 완료",
        extra={"tenant_id": tenant.tenant_id, "schema": schema},
    )
