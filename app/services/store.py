import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone

import redis.asyncio as redis
from redis.exceptions import RedisError
from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from app.core.config import Settings
from app.core.errors import StoreError
from app.db.base import Base
from app.db.models.deletion_log import DeletionLog
from app.db.models.user_record import UserRecord
from app.db.session import make_engine, make_sessionmaker
from app.schemas.deletion import DeletionRecord, DeletionStatus

logger = logging.getLogger(__name__)

class RecordStore(ABC):
    """Keyed access to user records and deletion audit records.

    Backends raise ``StoreError`` for any failure of the underlying store;
    a missing key is not a failure and comes back as ``None``.
    """

    async def init(self) -> None:
        pass

    async def close(self) -> None:
        pass

    @abstractmethod
    async def get_user(self, user_id: str) -> dict | None: ...

    @abstractmethod
    async def put_user(self, user_id: str, data: dict) -> None: ...

    @abstractmethod
    async def delete_user(self, user_id: str) -> None: ...

    @abstractmethod
    async def get_deletion_log(self, code: str) -> DeletionRecord | None: ...

    @abstractmethod
    async def put_deletion_log(self, code: str, record: DeletionRecord) -> None: ...

class SqlRecordStore(RecordStore):
    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.sessions = make_sessionmaker(engine)

    @classmethod
    def from_url(cls, database_url: str) -> "SqlRecordStore":
        return cls(make_engine(database_url))

    async def init(self) -> None:
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except (SQLAlchemyError, OSError) as e:
            raise StoreError(f"Could not initialise tables: {e}") from e

    async def close(self) -> None:
        await self.engine.dispose()

    async def get_user(self, user_id: str) -> dict | None:
        try:
            async with self.sessions() as db:
                u = (await db.execute(select(UserRecord).where(UserRecord.id == user_id))).scalar_one_or_none()
        except (SQLAlchemyError, OSError) as e:
            raise StoreError(str(e)) from e
        return u.data if u else None

    async def put_user(self, user_id: str, data: dict) -> None:
        try:
            async with self.sessions() as db:
                u = (await db.execute(select(UserRecord).where(UserRecord.id == user_id))).scalar_one_or_none()
                if u:
                    u.data = data
                else:
                    db.add(UserRecord(id=user_id, data=data))
                await db.commit()
        except (SQLAlchemyError, OSError) as e:
            raise StoreError(str(e)) from e

    async def delete_user(self, user_id: str) -> None:
        try:
            async with self.sessions() as db:
                await db.execute(delete(UserRecord).where(UserRecord.id == user_id))
                await db.commit()
        except (SQLAlchemyError, OSError) as e:
            raise StoreError(str(e)) from e

    async def get_deletion_log(self, code: str) -> DeletionRecord | None:
        try:
            async with self.sessions() as db:
                row = (await db.execute(select(DeletionLog).where(DeletionLog.confirmation_code == code))).scalar_one_or_none()
        except (SQLAlchemyError, OSError) as e:
            raise StoreError(str(e)) from e
        if not row:
            return None
        ts = row.timestamp
        # SQLite drops tzinfo on the way back
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        return DeletionRecord(user_id=row.user_id, status=row.status, message=row.message, timestamp=ts.isoformat())

    async def put_deletion_log(self, code: str, record: DeletionRecord) -> None:
        try:
            async with self.sessions() as db:
                await db.merge(DeletionLog(
                    confirmation_code=code,
                    user_id=record.user_id,
                    status=DeletionStatus(record.status),
                    message=record.message,
                    timestamp=datetime.fromisoformat(record.timestamp),
                ))
                await db.commit()
        except (SQLAlchemyError, OSError) as e:
            raise StoreError(str(e)) from e

class RedisRecordStore(RecordStore):
    def __init__(self, client: redis.Redis):
        self.r = client

    @classmethod
    def from_url(cls, redis_url: str) -> "RedisRecordStore":
        return cls(redis.from_url(redis_url, decode_responses=True))

    @staticmethod
    def user_key(user_id: str) -> str:
        return f"users:{user_id}"

    @staticmethod
    def log_key(code: str) -> str:
        return f"deletion_logs:{code}"

    async def close(self) -> None:
        await self.r.aclose()

    async def get_user(self, user_id: str) -> dict | None:
        try:
            v = await self.r.get(self.user_key(user_id))
            return json.loads(v) if v is not None else None
        except (RedisError, OSError, ValueError) as e:
            raise StoreError(str(e)) from e

    async def put_user(self, user_id: str, data: dict) -> None:
        try:
            await self.r.set(self.user_key(user_id), json.dumps(data))
        except (RedisError, OSError) as e:
            raise StoreError(str(e)) from e

    async def delete_user(self, user_id: str) -> None:
        try:
            await self.r.delete(self.user_key(user_id))
        except (RedisError, OSError) as e:
            raise StoreError(str(e)) from e

    async def get_deletion_log(self, code: str) -> DeletionRecord | None:
        try:
            v = await self.r.get(self.log_key(code))
            return DeletionRecord.model_validate_json(v) if v is not None else None
        except (RedisError, OSError, ValueError) as e:
            raise StoreError(str(e)) from e

    async def put_deletion_log(self, code: str, record: DeletionRecord) -> None:
        try:
            await self.r.set(self.log_key(code), record.model_dump_json(by_alias=True))
        except (RedisError, OSError) as e:
            raise StoreError(str(e)) from e

def build_store(settings: Settings) -> RecordStore:
    logger.info("Using %s record store", settings.STORE_BACKEND)
    if settings.STORE_BACKEND == "redis":
        return RedisRecordStore.from_url(settings.REDIS_URL)
    return SqlRecordStore.from_url(settings.DATABASE_URL)
