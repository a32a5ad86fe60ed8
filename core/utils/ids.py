"""
식별자 생성

신규 레코드 ID는 UUID4 문자열.
"""

from uuid import uuid4


def new_id() -> str:
    """신규 레코드 ID 생성 (서비스의 기본 id_factory)"""
    return str(uuid4())
