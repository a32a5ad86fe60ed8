"""
계층 구조 검사

계정/코스트센터의 parent_id 자기참조가 순환을 만들지 않도록 조상을 유한 횟수 탐색.
"""

from collections.abc import Awaitable, Callable

from core.constants import Defaults
from core.errors import ReferentialIntegrityError, ValidationError

# 노드 ID → (존재 여부, parent_id)
ParentLookup = Callable[[str], Awaitable[tuple[bool, str | None]]]


async def check_parent(
    entity: str,
    node_id: str | None,
    parent_id: str | None,
    lookup: ParentLookup,
    max_hops: int = Defaults.MAX_HIERARCHY_HOPS,
) -> None:
    """상위 노드 지정 검증

    Args:
        entity: 엔티티 이름 (오류 메시지용, 예: "account")
        node_id: 대상 노드 ID (신규 생성이면 None)
        parent_id: 지정하려는 상위 노드 ID
        lookup: 노드 ID → (존재 여부, parent_id)
        max_hops: 조상 탐색 최대 횟수

    Raises:
        ReferentialIntegrityError: 상위 노드가 존재하지 않는 경우
        ValidationError: 자기 자신을 조상으로 만드는 경우, 또는 깊이 초과
    """
    if parent_id is None:
        return

    if node_id is not None and parent_id == node_id:
        raise ValidationError(
            f"{entity} cannot be its own parent",
            entity_id=node_id,
        )

    exists, ancestor = await lookup(parent_id)
    if not exists:
        raise ReferentialIntegrityError(
            f"parent {entity} does not exist: {parent_id}",
            parent_id=parent_id,
        )

    hops = 0
    while ancestor is not None:
        if node_id is not None and ancestor == node_id:
            raise ValidationError(
                f"{entity} hierarchy cycle: {node_id} would become its own ancestor",
                entity_id=node_id,
                parent_id=parent_id,
            )
        hops += 1
        if hops > max_hops:
            raise ValidationError(
                f"{entity} hierarchy exceeds {max_hops} levels",
                entity_id=node_id,
                parent_id=parent_id,
            )
        exists, ancestor = await lookup(ancestor)
        if not exists:
            break
