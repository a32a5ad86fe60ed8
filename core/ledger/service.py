"""
Ledger 서비스

계정 관리(Account Directory), 분개 생성/전기(Journal Entry Engine),
취소/역분개(Void/Reversal) 처리.

상태 전이:
    DRAFT --post--> POSTED --void--> VOIDED
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING

from core.errors import InvalidTransitionError, NotFoundError, ValidationError
from core.ledger.entry_builder import build_entry, build_reversal, validate_entry
from core.ledger.hierarchy import check_parent
from core.ledger.models import Account, JournalEntry
from core.ledger.requests import CreateAccountRequest, CreateJournalEntryRequest
from core.ledger.store import LedgerStore
from core.ledger.types import JournalEntryStatus, can_transition
from core.types import TenantScope
from core.utils.ids import new_id
from core.utils.timezone import now_utc

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


class LedgerService:
    """Ledger 서비스

    모든 연산은 TenantScope를 첫 인자로 받는다.
    변경 연산(create/post/void)은 단일 트랜잭션으로 수행되어 부분 반영이 없다.

    Args:
        db: SQLite 어댑터 (테넌트 스키마 ATTACH 상태)
        store: LedgerStore (None이면 db로 생성)
        clock: 현재 시각 함수
        id_factory: 신규 ID 생성 함수
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        store: LedgerStore | None = None,
        clock: Callable[[], datetime] = now_utc,
        id_factory: Callable[[], str] = new_id,
    ):
        self.db = db
        self.store = store or LedgerStore(db)
        self.clock = clock
        self.id_factory = id_factory

    # -------------------------------------------------------------------------
    # Account Directory
    # -------------------------------------------------------------------------

    async def get_account(self, scope: TenantScope, account_id: str) -> Account:
        """계정 조회

        Raises:
            NotFoundError: 없거나 다른 테넌트 소유
        """
        account = await self.store.get_account(scope, account_id)
        if account is None:
            raise NotFoundError("account", account_id)
        return account

    async def list_accounts(self, scope: TenantScope, active_only: bool = False) -> list[Account]:
        """계정 목록 (코드 순)"""
        return await self.store.list_accounts(scope, active_only)

    async def create_account(self, scope: TenantScope, request: CreateAccountRequest) -> Account:
        """계정 생성

        코드 중복은 저장소 제약으로 거부된다 (ReferentialIntegrityError).

        Raises:
            ValidationError: code/name 누락, 계층 순환
            ReferentialIntegrityError: 상위 계정 없음, 코드 중복
        """
        if not request.code.strip():
            raise ValidationError("account code is required")
        if not request.name.strip():
            raise ValidationError("account name is required")

        await check_parent(
            "account",
            None,
            request.parent_id,
            lambda account_id: self.store.get_account_parent(scope, account_id),
        )

        account = Account(
            id=self.id_factory(),
            tenant_id=scope.tenant_id,
            code=request.code.strip(),
            name=request.name.strip(),
            account_type=request.account_type,
            parent_id=request.parent_id,
            is_active=True,
            is_system=False,
            description=request.description,
            created_at=self.clock(),
        )
        await self.store.insert_account(scope, account)

        logger.info(
            f"Account created: {account.code}",
            extra={"tenant_id": scope.tenant_id, "account_id": account.id},
        )
        return account

    # -------------------------------------------------------------------------
    # Journal Entry Engine
    # -------------------------------------------------------------------------

    async def get_entry(self, scope: TenantScope, entry_id: str) -> JournalEntry:
        """분개 조회 (라인 포함)

        Raises:
            NotFoundError: 없거나 다른 테넌트 소유
        """
        entry = await self.store.get_entry(scope, entry_id)
        if entry is None:
            raise NotFoundError("journal entry", entry_id)
        return entry

    async def list_entries(
        self,
        scope: TenantScope,
        status: JournalEntryStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[JournalEntry]:
        """분개 목록 (헤더만)"""
        return await self.store.list_entries(scope, status=status, limit=limit, offset=offset)

    async def create_entry(
        self,
        scope: TenantScope,
        request: CreateJournalEntryRequest,
    ) -> JournalEntry:
        """분개 생성 (DRAFT)

        검증 실패 시 아무것도 저장되지 않는다.

        Raises:
            ValidationError: 복식부기 규칙 위반
            ReferentialIntegrityError: 존재하지 않는 계정 참조
        """
        try:
            entry = build_entry(
                scope,
                request,
                created_at=self.clock(),
                id_factory=self.id_factory,
            )
        except ValidationError as e:
            logger.warning(
                f"Journal entry rejected: {e.message}",
                extra={"tenant_id": scope.tenant_id, **e.details},
            )
            raise

        async with self.db.transaction():
            await self.store.insert_entry(scope, entry)

        logger.info(
            f"Journal entry created: {entry.entry_number}",
            extra={
                "tenant_id": scope.tenant_id,
                "entry_id": entry.id,
                "entry_number": entry.entry_number,
            },
        )
        return entry

    async def post_entry(self, scope: TenantScope, entry_id: str, user_id: str) -> None:
        """분개 전기 (DRAFT → POSTED)

        전기 직전에 저장된 분개를 재검증하고,
        status='DRAFT' 조건부 업데이트로 동시 전기를 차단한다.

        Raises:
            NotFoundError: 분개 없음
            InvalidTransitionError: DRAFT가 아님 (조건부 업데이트 0행 포함)
            ValidationError: 저장된 분개가 불균형
        """
        entry = await self.get_entry(scope, entry_id)

        if not can_transition(entry.status, JournalEntryStatus.POSTED):
            logger.warning(
                "Post rejected",
                extra={"tenant_id": scope.tenant_id, "entry_id": entry_id, "status": entry.status.value},
            )
            raise InvalidTransitionError(
                f"only draft entries can be posted, current status: {entry.status.value}",
                entry_id=entry_id,
                current=entry.status.value,
                target=JournalEntryStatus.POSTED.value,
            )

        validate_entry(entry)

        async with self.db.transaction():
            updated = await self.store.mark_posted(scope, entry_id, user_id, self.clock())
            if updated == 0:
                raise InvalidTransitionError(
                    "journal entry is no longer in draft status",
                    entry_id=entry_id,
                    target=JournalEntryStatus.POSTED.value,
                )

        logger.info(
            f"Journal entry posted: {entry.entry_number}",
            extra={
                "tenant_id": scope.tenant_id,
                "entry_id": entry_id,
                "entry_number": entry.entry_number,
                "user_id": user_id,
            },
        )

    async def void_entry(
        self,
        scope: TenantScope,
        entry_id: str,
        user_id: str,
        reason: str,
    ) -> JournalEntry:
        """분개 취소 (POSTED → VOIDED) + 역분개 생성

        원본 취소와 역분개 생성은 하나의 트랜잭션.
        역분개 저장이 실패하면 원본은 POSTED 상태로 남는다.

        Args:
            scope: 테넌트 범위
            entry_id: 취소할 분개 ID
            user_id: 요청자
            reason: 취소 사유

        Returns:
            생성된 역분개 (POSTED)

        Raises:
            NotFoundError: 분개 없음
            InvalidTransitionError: POSTED가 아님 (조건부 업데이트 0행 포함)
            ReferentialIntegrityError: 역분개 라인의 계정이 없음
        """
        now = self.clock()

        async with self.db.transaction():
            original = await self.get_entry(scope, entry_id)

            if not can_transition(original.status, JournalEntryStatus.VOIDED):
                logger.warning(
                    "Void rejected",
                    extra={"tenant_id": scope.tenant_id, "entry_id": entry_id, "status": original.status.value},
                )
                raise InvalidTransitionError(
                    f"only posted entries can be voided, current status: {original.status.value}",
                    entry_id=entry_id,
                    current=original.status.value,
                    target=JournalEntryStatus.VOIDED.value,
                )

            updated = await self.store.mark_voided(scope, entry_id, user_id, reason, now)
            if updated == 0:
                raise InvalidTransitionError(
                    "journal entry is no longer in posted status",
                    entry_id=entry_id,
                    target=JournalEntryStatus.VOIDED.value,
                )

            reversal = build_reversal(
                original,
                user_id=user_id,
                reason=reason,
                now=now,
                id_factory=self.id_factory,
            )
            await self.store.insert_entry(scope, reversal)

        logger.info(
            f"Journal entry voided: {original.entry_number} → {reversal.entry_number}",
            extra={
                "tenant_id": scope.tenant_id,
                "entry_id": entry_id,
                "reversal_id": reversal.id,
                "reason": reason,
            },
        )
        return reversal
