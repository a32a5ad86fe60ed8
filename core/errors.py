"""
Ledger 예외 정의

모든 실패는 호출자에게 그대로 전달되며 자동 재시도하지 않음.
details에는 엔티티 ID, 시도한 상태 전이, 불균형 금액 등 문맥 정보를 담는다.
"""

from typing import Any


class LedgerError(Exception):
    """Ledger 예외 기본 클래스"""

    def __init__(self, message: str, **details: Any) -> None:
        self.message = message
        self.details = details
        super().__init__(message)


class ValidationError(LedgerError):
    """검증 실패 (불균형, 0 금액, 음수, 차대 동시 기입, 필수값 누락)

    항상 쓰기 이전에 발생하므로 부분 반영이 없다.
    """

    pass


class NotFoundError(LedgerError):
    """대상 없음

    다른 테넌트 소유의 레코드도 동일하게 취급.
    """

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(
            f"{entity} not found: {entity_id}",
            entity=entity,
            entity_id=entity_id,
        )
        self.entity = entity
        self.entity_id = entity_id


class InvalidTransitionError(LedgerError):
    """허용되지 않은 상태 전이"""

    def __init__(
        self,
        message: str,
        entry_id: str,
        current: str | None = None,
        target: str | None = None,
    ) -> None:
        super().__init__(message, entry_id=entry_id, current=current, target=target)
        self.entry_id = entry_id
        self.current = current
        self.target = target


class ReferentialIntegrityError(LedgerError):
    """참조 무결성 위반 (자식/배분이 있는 코스트센터 삭제, 존재하지 않는 계정 참조 등)"""

    pass


class StoreError(LedgerError):
    """저장소 오류 (연결/트랜잭션 실패)

    작업 문맥을 붙여 전파하며, 감싸고 있는 트랜잭션은 롤백된다.
    """

    def __init__(self, operation: str, cause: str) -> None:
        super().__init__(f"{operation}: {cause}", operation=operation)
        self.operation = operation
