"""
유틸리티 패키지

타임존 처리, ID 생성 등 공통 유틸리티
"""

from core.utils.ids import new_id
from core.utils.timezone import (
    format_date,
    format_ts,
    now_utc,
    parse_date,
    parse_ts,
    to_utc,
)

__all__ = [
    "new_id",
    "now_utc",
    "to_utc",
    "format_ts",
    "parse_ts",
    "format_date",
    "parse_date",
]
