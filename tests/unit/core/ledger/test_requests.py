"""요청 스키마 (pydantic) 테스트"""

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError as PydanticValidationError

from core.ledger.requests import (
    CreateAccountRequest,
    CreateCostAllocationRequest,
    CreateCostCenterRequest,
    CreateJournalEntryLineRequest,
    CreateJournalEntryRequest,
    UpdateCostCenterRequest,
)
from core.ledger.types import AccountType, BudgetPeriod


class TestCreateAccountRequest:
    def test_parse(self) -> None:
        """문자열 계정 유형 파싱"""
        request = CreateAccountRequest(code="1000", name="Cash", account_type="ASSET")

        assert request.account_type is AccountType.ASSET
        assert request.parent_id is None
        assert request.description == ""

    def test_unknown_type(self) -> None:
        with pytest.raises(PydanticValidationError):
            CreateAccountRequest(code="1000", name="Cash", account_type="CASH")


class TestJournalEntryLineRequest:
    """분개 라인 요청 테스트"""

    def test_defaults(self) -> None:
        """금액 기본 0, 통화/환율 미지정"""
        request = CreateJournalEntryLineRequest(account_id="a1", debit_amount="100")

        assert request.debit_amount == Decimal("100")
        assert request.credit_amount == Decimal("0")
        assert request.currency is None
        assert request.exchange_rate is None

    def test_currency_uppercased(self) -> None:
        assert CreateJournalEntryLineRequest(account_id="a1", currency="usd").currency == "USD"

    def test_empty_currency_means_default(self) -> None:
        assert CreateJournalEntryLineRequest(account_id="a1", currency="").currency is None

    @pytest.mark.parametrize("currency", ["US", "DOLLAR", "U$D"])
    def test_invalid_currency(self, currency: str) -> None:
        with pytest.raises(PydanticValidationError):
            CreateJournalEntryLineRequest(account_id="a1", currency=currency)

    def test_decimal_precision_preserved(self) -> None:
        """8자리 이상 소수 유지"""
        request = CreateJournalEntryLineRequest(account_id="a1", exchange_rate="0.123456789")

        assert request.exchange_rate == Decimal("0.123456789")

    def test_negative_amount_left_to_engine(self) -> None:
        """음수 검증은 엔진에서 수행"""
        assert CreateJournalEntryLineRequest(account_id="a1", debit_amount="-1").debit_amount == Decimal("-1")


class TestJournalEntryRequest:
    def test_lines_default_empty(self) -> None:
        request = CreateJournalEntryRequest(entry_date="2026-03-15", description="x", user_id="u1")

        assert request.entry_date == date(2026, 3, 15)
        assert request.lines == []
        assert request.source_id is None

    def test_user_required(self) -> None:
        with pytest.raises(PydanticValidationError):
            CreateJournalEntryRequest(entry_date="2026-03-15", description="x")


class TestCostCenterRequests:
    def test_defaults(self) -> None:
        request = CreateCostCenterRequest(code="MKT", name="Marketing")

        assert request.is_active is True
        assert request.budget_amount is None
        assert request.budget_period is None

    def test_update_is_full_replacement(self) -> None:
        """수정 요청은 생성 요청과 같은 필드"""
        request = UpdateCostCenterRequest(code="MKT", name="Marketing", budget_period="MONTHLY")

        assert isinstance(request, CreateCostCenterRequest)
        assert request.budget_period is BudgetPeriod.MONTHLY

    def test_allocation_request(self) -> None:
        request = CreateCostAllocationRequest(
            journal_entry_line_id="l1",
            allocation_percentage="12.5",
            allocation_date="2026-03-15",
        )

        assert request.amount is None
        assert request.allocation_percentage == Decimal("12.5")
