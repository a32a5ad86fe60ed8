"""
데이터베이스 어댑터

SQLite WAL 모드 연결 관리 및 테넌트 스키마 ATTACH.
"""

from adapters.db.sqlite_adapter import (
    SQLiteAdapter,
    create_connection,
    get_tenant_db_path,
)

__all__ = [
    "SQLiteAdapter",
    "create_connection",
    "get_tenant_db_path",
]
