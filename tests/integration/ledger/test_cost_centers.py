"""코스트센터 통합 테스트 (CRUD, 계층, 배분, 예산 보고서)"""

from datetime import date
from decimal import Decimal

import pytest
import pytest_asyncio

from core.errors import NotFoundError, ReferentialIntegrityError, ValidationError
from core.ledger.requests import (
    CreateCostAllocationRequest,
    CreateCostCenterRequest,
    UpdateCostCenterRequest,
)
from core.ledger.types import BudgetPeriod


@pytest_asyncio.fixture
async def expense_line(accounts, posted_entry):
    """전기된 비용 라인 (기준 금액 200)"""
    entry = await posted_entry([
        {"account_id": accounts["Office Expense"].id, "debit_amount": "200"},
        {"account_id": accounts["Cash"].id, "credit_amount": "200"},
    ])
    return entry.lines[0]


@pytest_asyncio.fixture
async def marketing(cost_centers, tenant):
    return await cost_centers.create(
        tenant,
        CreateCostCenterRequest(code="MKT", name="Marketing", budget_amount=Decimal("1000")),
    )


def allocation(line_id: str, **fields) -> CreateCostAllocationRequest:
    fields.setdefault("allocation_date", date(2026, 3, 15))
    return CreateCostAllocationRequest(journal_entry_line_id=line_id, **fields)


class TestCostCenterCrud:
    """코스트센터 CRUD 테스트"""

    @pytest.mark.asyncio
    async def test_create_defaults(self, cost_centers, tenant, now) -> None:
        """예산 기간 기본 ANNUAL, 활성"""
        cc = await cost_centers.create(tenant, CreateCostCenterRequest(code="OPS", name="Operations"))

        loaded = await cost_centers.get(tenant, cc.id)
        assert loaded.budget_period == BudgetPeriod.ANNUAL
        assert loaded.budget_amount is None
        assert loaded.is_active is True
        assert loaded.created_at == loaded.updated_at == now

    @pytest.mark.asyncio
    async def test_duplicate_code(self, cost_centers, tenant, marketing) -> None:
        """코드 중복"""
        with pytest.raises(ReferentialIntegrityError):
            await cost_centers.create(tenant, CreateCostCenterRequest(code="MKT", name="Other"))

    @pytest.mark.asyncio
    async def test_blank_name(self, cost_centers, tenant) -> None:
        """이름 누락"""
        with pytest.raises(ValidationError, match="name is required"):
            await cost_centers.create(tenant, CreateCostCenterRequest(code="X", name=""))

    @pytest.mark.asyncio
    async def test_negative_budget(self, cost_centers, tenant) -> None:
        """음수 예산"""
        with pytest.raises(ValidationError):
            await cost_centers.create(
                tenant,
                CreateCostCenterRequest(code="X", name="X", budget_amount=Decimal("-1")),
            )

    @pytest.mark.asyncio
    async def test_update_replaces_fields(self, cost_centers, tenant, marketing) -> None:
        """수정은 전체 필드 교체"""
        updated = await cost_centers.update(
            tenant,
            marketing.id,
            UpdateCostCenterRequest(
                code="MKT",
                name="Marketing EU",
                budget_amount=Decimal("5000"),
                budget_period=BudgetPeriod.QUARTERLY,
                is_active=False,
            ),
        )

        loaded = await cost_centers.get(tenant, marketing.id)
        assert loaded == updated
        assert loaded.name == "Marketing EU"
        assert loaded.budget_period == BudgetPeriod.QUARTERLY
        assert loaded.is_active is False

    @pytest.mark.asyncio
    async def test_update_missing(self, cost_centers, tenant) -> None:
        """없는 코스트센터 수정"""
        with pytest.raises(NotFoundError):
            await cost_centers.update(tenant, "missing", UpdateCostCenterRequest(code="X", name="X"))

    @pytest.mark.asyncio
    async def test_list_active_only(self, cost_centers, tenant, marketing) -> None:
        """활성만 조회"""
        await cost_centers.create(tenant, CreateCostCenterRequest(code="OLD", name="Legacy", is_active=False))

        assert len(await cost_centers.list(tenant)) == 2
        assert [cc.code for cc in await cost_centers.list(tenant, active_only=True)] == ["MKT"]

    @pytest.mark.asyncio
    async def test_delete(self, cost_centers, tenant, marketing) -> None:
        """삭제 후 조회 불가"""
        await cost_centers.delete(tenant, marketing.id)

        with pytest.raises(NotFoundError):
            await cost_centers.get(tenant, marketing.id)

    @pytest.mark.asyncio
    async def test_delete_missing(self, cost_centers, tenant) -> None:
        """없는 코스트센터 삭제"""
        with pytest.raises(NotFoundError):
            await cost_centers.delete(tenant, "missing")


class TestCostCenterHierarchy:
    """코스트센터 계층 테스트"""

    @pytest.mark.asyncio
    async def test_unknown_parent(self, cost_centers, tenant) -> None:
        """존재하지 않는 상위"""
        with pytest.raises(ReferentialIntegrityError):
            await cost_centers.create(
                tenant,
                CreateCostCenterRequest(code="X", name="X", parent_id="missing"),
            )

    @pytest.mark.asyncio
    async def test_cycle_rejected(self, cost_centers, tenant, marketing) -> None:
        """자신의 하위를 상위로 지정 불가"""
        child = await cost_centers.create(
            tenant,
            CreateCostCenterRequest(code="MKT-DE", name="Marketing DE", parent_id=marketing.id),
        )

        with pytest.raises(ValidationError):
            await cost_centers.update(
                tenant,
                marketing.id,
                UpdateCostCenterRequest(code="MKT", name="Marketing", parent_id=child.id),
            )

    @pytest.mark.asyncio
    async def test_self_parent_rejected(self, cost_centers, tenant, marketing) -> None:
        """자기 자신을 상위로 지정 불가"""
        with pytest.raises(ValidationError):
            await cost_centers.update(
                tenant,
                marketing.id,
                UpdateCostCenterRequest(code="MKT", name="Marketing", parent_id=marketing.id),
            )

    @pytest.mark.asyncio
    async def test_delete_with_children_rejected(self, cost_centers, tenant, marketing) -> None:
        """하위가 있으면 삭제 불가, 아무것도 삭제되지 않음"""
        await cost_centers.create(
            tenant,
            CreateCostCenterRequest(code="MKT-DE", name="Marketing DE", parent_id=marketing.id),
        )

        with pytest.raises(ReferentialIntegrityError, match="1 children"):
            await cost_centers.delete(tenant, marketing.id)

        assert len(await cost_centers.list(tenant)) == 2


class TestAllocations:
    """코스트 배분 테스트"""

    @pytest.mark.asyncio
    async def test_allocate_amount(self, cost_centers, tenant, marketing, expense_line) -> None:
        """금액 지정 배분"""
        result = await cost_centers.allocate(
            tenant, marketing.id, allocation(expense_line.id, amount=Decimal("120"), notes="Q1 campaign")
        )

        listed = await cost_centers.list_allocations(tenant, marketing.id)
        assert listed == [result]
        assert listed[0].amount == Decimal("120")
        assert listed[0].allocation_percentage is None
        assert listed[0].notes == "Q1 campaign"

    @pytest.mark.asyncio
    async def test_allocate_percentage(self, cost_centers, tenant, marketing, expense_line) -> None:
        """비율만 지정 → 라인 기준 금액 × 비율 / 100"""
        result = await cost_centers.allocate(
            tenant, marketing.id, allocation(expense_line.id, allocation_percentage=Decimal("25"))
        )

        assert result.amount == Decimal("50")
        assert result.allocation_percentage == Decimal("25")

    @pytest.mark.asyncio
    async def test_percentage_out_of_range(self, cost_centers, tenant, marketing, expense_line) -> None:
        """비율 범위 (0, 100]"""
        for pct in ("0", "100.01", "-5"):
            with pytest.raises(ValidationError):
                await cost_centers.allocate(
                    tenant, marketing.id, allocation(expense_line.id, allocation_percentage=Decimal(pct))
                )

    @pytest.mark.asyncio
    async def test_requires_amount_or_percentage(self, cost_centers, tenant, marketing, expense_line) -> None:
        """금액/비율 모두 없음"""
        with pytest.raises(ValidationError, match="amount or a percentage"):
            await cost_centers.allocate(tenant, marketing.id, allocation(expense_line.id))

    @pytest.mark.asyncio
    async def test_non_positive_amount(self, cost_centers, tenant, marketing, expense_line) -> None:
        """0 이하 금액"""
        with pytest.raises(ValidationError, match="must be positive"):
            await cost_centers.allocate(tenant, marketing.id, allocation(expense_line.id, amount=Decimal("0")))

    @pytest.mark.asyncio
    async def test_draft_line_rejected(
        self, cost_centers, ledger, tenant, marketing, accounts, make_request
    ) -> None:
        """미전기 분개 라인은 배분 불가"""
        entry = await ledger.create_entry(
            tenant,
            make_request([
                {"account_id": accounts["Office Expense"].id, "debit_amount": "10"},
                {"account_id": accounts["Cash"].id, "credit_amount": "10"},
            ]),
        )

        with pytest.raises(ValidationError, match="current status: DRAFT"):
            await cost_centers.allocate(tenant, marketing.id, allocation(entry.lines[0].id, amount=Decimal("5")))

    @pytest.mark.asyncio
    async def test_unknown_line(self, cost_centers, tenant, marketing) -> None:
        """없는 라인"""
        with pytest.raises(NotFoundError):
            await cost_centers.allocate(tenant, marketing.id, allocation("missing", amount=Decimal("5")))

    @pytest.mark.asyncio
    async def test_unknown_cost_center(self, cost_centers, tenant, expense_line) -> None:
        """없는 코스트센터"""
        with pytest.raises(NotFoundError):
            await cost_centers.allocate(tenant, "missing", allocation(expense_line.id, amount=Decimal("5")))

    @pytest.mark.asyncio
    async def test_delete_with_allocations_rejected(self, cost_centers, tenant, marketing, expense_line) -> None:
        """배분이 있으면 삭제 불가"""
        await cost_centers.allocate(tenant, marketing.id, allocation(expense_line.id, amount=Decimal("10")))

        with pytest.raises(ReferentialIntegrityError, match="1 allocations"):
            await cost_centers.delete(tenant, marketing.id)

        assert await cost_centers.get(tenant, marketing.id)


class TestCostCenterReport:
    """예산 보고서 테스트"""

    @pytest.mark.asyncio
    async def test_budget_usage(self, cost_centers, tenant, marketing, expense_line) -> None:
        """기간 내 배분 합계와 예산 사용률"""
        await cost_centers.allocate(tenant, marketing.id, allocation(expense_line.id, amount=Decimal("150")))
        await cost_centers.allocate(
            tenant,
            marketing.id,
            allocation(expense_line.id, amount=Decimal("50"), allocation_date=date(2026, 5, 1)),
        )

        report = await cost_centers.report(tenant, date(2026, 3, 1), date(2026, 3, 31))

        summary = report.cost_centers[0]
        assert summary.total_expenses == Decimal("150")
        assert summary.budget_used_percentage == Decimal("15")
        assert summary.is_over_budget is False
        assert report.total_expenses == Decimal("150")
        assert report.total_budget == Decimal("1000")

    @pytest.mark.asyncio
    async def test_over_budget(self, cost_centers, tenant, expense_line) -> None:
        """예산 초과"""
        small = await cost_centers.create(
            tenant, CreateCostCenterRequest(code="SM", name="Small", budget_amount=Decimal("100"))
        )
        await cost_centers.allocate(tenant, small.id, allocation(expense_line.id, amount=Decimal("150")))

        report = await cost_centers.report(tenant, date(2026, 3, 1), date(2026, 3, 31))

        assert report.cost_centers[0].is_over_budget is True
        assert report.cost_centers[0].budget_used_percentage == Decimal("150")

    @pytest.mark.asyncio
    async def test_no_budget_never_over(self, cost_centers, tenant, expense_line) -> None:
        """예산 없는 코스트센터는 사용률 0, 초과 아님"""
        free = await cost_centers.create(tenant, CreateCostCenterRequest(code="FREE", name="No Budget"))
        await cost_centers.allocate(tenant, free.id, allocation(expense_line.id, amount=Decimal("200")))

        summary = (await cost_centers.report(tenant, date(2026, 3, 1), date(2026, 3, 31))).cost_centers[0]

        assert summary.budget_amount == Decimal("0")
        assert summary.budget_used_percentage == Decimal("0")
        assert summary.is_over_budget is False

    @pytest.mark.asyncio
    async def test_inactive_excluded(self, cost_centers, tenant, marketing) -> None:
        """비활성 코스트센터는 보고서 제외"""
        await cost_centers.create(tenant, CreateCostCenterRequest(code="OLD", name="Legacy", is_active=False))

        report = await cost_centers.report(tenant, date(2026, 3, 1), date(2026, 3, 31))

        assert [s.cost_center.code for s in report.cost_centers] == ["MKT"]

    @pytest.mark.asyncio
    async def test_start_after_end(self, cost_centers, tenant) -> None:
        """start > end"""
        with pytest.raises(ValidationError):
            await cost_centers.report(tenant, date(2026, 4, 1), date(2026, 3, 1))
