"""
타임존 유틸리티

내부 저장: UTC ISO-8601 문자열 원칙 준수를 위한 헬퍼 함수
"""

from datetime import date, datetime, timezone


def now_utc() -> datetime:
    """현재 UTC 시간 반환 (타임존 명시)

    datetime.now(timezone.utc)의 축약형.
    서비스의 기본 clock으로 사용.

    Returns:
        현재 UTC 시간 (tzinfo=timezone.utc)
    """
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """datetime을 UTC로 변환 (naive면 UTC로 간주)"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_ts(dt: datetime | None) -> str | None:
    """타임스탬프를 저장용 ISO 문자열로 변환"""
    if dt is None:
        return None
    return to_utc(dt).isoformat()


def parse_ts(value: str | None) -> datetime | None:
    """저장된 ISO 문자열을 UTC datetime으로 복원"""
    if not value:
        return None
    return to_utc(datetime.fromisoformat(value))


def format_date(value: date) -> str:
    """날짜를 YYYY-MM-DD 문자열로 변환

    datetime이 들어와도 날짜 부분만 사용 (문자열 비교로 기간 조회).
    """
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def parse_date(value: str) -> date:
    """YYYY-MM-DD 문자열을 date로 복원"""
    return date.fromisoformat(value)
