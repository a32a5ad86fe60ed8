"""
SQLite 어댑터

WAL 모드로 SQLite 연결 관리.
테넌트마다 별도 DB 파일을 ATTACH하여 스키마 단위로 격리한다.

주의: 스키마 이름은 SQL에 직접 삽입되므로 validate_schema_name 통과 필수
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

from core.constants import Paths
from core.errors import ReferentialIntegrityError, StoreError
from core.types import validate_schema_name

logger = logging.getLogger(__name__)


def get_tenant_db_path(schema_name: str, tenants_dir: Path | str | None = None) -> Path:
    """테넌트 스키마의 DB 파일 경로 반환

    Args:
        schema_name: 테넌트 스키마 이름
        tenants_dir: 테넌트 DB 디렉토리 (None이면 기본 경로)

    Returns:
        DB 파일 경로 (Path 타입)
    """
    base = Path(tenants_dir) if tenants_dir is not None else Paths.TENANTS_DIR
    return base / f"{validate_schema_name(schema_name)}.db"


async def create_connection(db_path: Path | str) -> aiosqlite.Connection:
    """SQLite 연결 생성 (WAL 모드)

    Args:
        db_path: DB 파일 경로

    Returns:
        aiosqlite 연결 객체
    """
    db_path_str = str(db_path)

    # 디렉토리가 없으면 생성
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    # autocommit: 트랜잭션은 transaction()의 BEGIN IMMEDIATE로만 시작
    conn = await aiosqlite.connect(db_path_str, isolation_level=None)

    # WAL 모드 설정
    await conn.execute("PRAGMA journal_mode=WAL")

    # 동시 접근 설정
    await conn.execute("PRAGMA busy_timeout=30000")  # 30초 대기

    # 외래 키 제약 활성화 (분개 라인 → 계정 참조)
    await conn.execute("PRAGMA foreign_keys=ON")

    logger.info(
        "SQLite 연결 생성",
        extra={"db_path": db_path_str},
    )

    return conn


class SQLiteAdapter:
    """SQLite 어댑터

    WAL 모드로 SQLite 연결 관리.
    트랜잭션 컨텍스트 매니저 제공.
    드라이버 예외는 Ledger 예외로 변환된다:
    - aiosqlite.IntegrityError → ReferentialIntegrityError
    - 그 외 aiosqlite.Error → StoreError

    Args:
        db_path: 메인 DB 파일 경로

    사용 예시:
    ```python
    adapter = SQLiteAdapter(db_path)
    await adapter.connect()
    await adapter.attach_schema("tenant_acme", tenant_db_path)

    async with adapter.transaction():
        await adapter.execute("INSERT INTO tenant_acme.accounts ...")

    await adapter.close()
    ```
    """

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self._conn: aiosqlite.Connection | None = None
        self._schemas: dict[str, Path] = {}
        # 트랜잭션 직렬화 (연결 하나를 태스크들이 공유)
        self._tx_lock = asyncio.Lock()
        self._tx_owner: asyncio.Task | None = None
        self._tx_depth = 0

    @property
    def is_connected(self) -> bool:
        """연결 상태 확인"""
        return self._conn is not None

    @property
    def attached_schemas(self) -> list[str]:
        """ATTACH된 테넌트 스키마 목록"""
        return sorted(self._schemas)

    async def connect(self) -> None:
        """연결 생성"""
        if self._conn is not None:
            return

        self._conn = await create_connection(self.db_path)

    async def close(self) -> None:
        """연결 종료"""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            self._schemas.clear()
            logger.info("SQLite 연결 종료")

    async def attach_schema(self, schema_name: str, db_path: Path | str) -> None:
        """테넌트 DB를 스키마 별칭으로 ATTACH

        이미 ATTACH된 스키마는 건너뜀. 트랜잭션 밖에서만 호출 가능.

        Args:
            schema_name: 스키마 별칭 (쿼리에서 "{schema}.table" 형태로 사용)
            db_path: 테넌트 DB 파일 경로
        """
        conn = self._require_conn()
        schema = validate_schema_name(schema_name)
        if schema in self._schemas:
            return

        path = Path(db_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            await conn.execute(f"ATTACH DATABASE ? AS {schema}", (str(path),))
            await conn.execute(f"PRAGMA {schema}.journal_mode=WAL")
        except aiosqlite.Error as e:
            raise StoreError(f"attach schema {schema}", str(e)) from e

        self._schemas[schema] = path
        logger.info("테넌트 스키마 ATTACH", extra={"schema": schema, "db_path": str(path)})

    async def detach_schema(self, schema_name: str) -> None:
        """테넌트 스키마 DETACH"""
        conn = self._require_conn()
        schema = validate_schema_name(schema_name)
        if schema not in self._schemas:
            return
        try:
            await conn.execute(f"DETACH DATABASE {schema}")
        except aiosqlite.Error as e:
            raise StoreError(f"detach schema {schema}", str(e)) from e
        del self._schemas[schema]

    def _require_conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Not connected to database")
        return self._conn

    async def execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Cursor:
        """SQL 실행"""
        conn = self._require_conn()

        try:
            if parameters:
                return await conn.execute(sql, parameters)
            return await conn.execute(sql)
        except aiosqlite.IntegrityError as e:
            raise ReferentialIntegrityError(f"constraint violation: {e}") from e
        except aiosqlite.Error as e:
            raise StoreError("execute", str(e)) from e

    async def executemany(
        self,
        sql: str,
        parameters: list[tuple[Any, ...]],
    ) -> aiosqlite.Cursor:
        """SQL 다중 실행"""
        conn = self._require_conn()

        try:
            return await conn.executemany(sql, parameters)
        except aiosqlite.IntegrityError as e:
            raise ReferentialIntegrityError(f"constraint violation: {e}") from e
        except aiosqlite.Error as e:
            raise StoreError("executemany", str(e)) from e

    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> tuple[Any, ...] | None:
        """단일 행 조회"""
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchone()

    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[tuple[Any, ...]]:
        """전체 행 조회"""
        cursor = await self.execute(sql, parameters)
        return list(await cursor.fetchall())

    async def commit(self) -> None:
        """커밋"""
        if self._conn is not None:
            await self._conn.commit()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """트랜잭션 컨텍스트 매니저

        BEGIN IMMEDIATE로 쓰기 잠금을 먼저 획득.
        성공 시 자동 커밋, 예외 시 자동 롤백 후 재발생.
        연결 하나를 공유하므로 트랜잭션은 asyncio.Lock으로 직렬화된다.
        같은 태스크의 중첩 호출만 바깥 트랜잭션에 합류하고 (커밋/롤백은 가장 바깥에서만),
        다른 태스크는 바깥 트랜잭션이 끝날 때까지 대기한다.

        사용 예시:
        ```python
        async with adapter.transaction():
            await adapter.execute("INSERT INTO ...")
            # 성공 시 자동 커밋
        ```
        """
        conn = self._require_conn()
        task = asyncio.current_task()

        if self._tx_owner is not None and self._tx_owner is task:
            self._tx_depth += 1
            try:
                yield conn
            finally:
                self._tx_depth -= 1
            return

        async with self._tx_lock:
            try:
                await conn.execute("BEGIN IMMEDIATE")
            except aiosqlite.Error as e:
                raise StoreError("begin transaction", str(e)) from e

            self._tx_owner = task
            self._tx_depth = 1
            try:
                yield conn
            except BaseException:
                await conn.rollback()
                raise
            else:
                try:
                    await conn.commit()
                except aiosqlite.Error as e:
                    await conn.rollback()
                    raise StoreError("commit transaction", str(e)) from e
            finally:
                self._tx_owner = None
                self._tx_depth = 0

    @property
    def in_transaction(self) -> bool:
        """transaction() 블록 내부 여부"""
        return self._tx_depth > 0

    async def table_exists(self, table_name: str, schema_name: str = "main") -> bool:
        """테이블 존재 여부 확인"""
        schema = schema_name if schema_name == "main" else validate_schema_name(schema_name)
        result = await self.fetchone(
            f"SELECT name FROM {schema}.sqlite_master WHERE type='table' AND name=?",
            (table_name,),
        )
        return result is not None

    # -------------------------------------------------------------------------
    # 컨텍스트 매니저
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
