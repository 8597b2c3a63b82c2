# repository/record_repository.py
import json
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional, Protocol
from redis.asyncio import Redis
from redis.exceptions import RedisError, WatchError
from config.cache import get_redis
from model.action import Record
from repository.namespaces import ROOT, Table, index_key, row_key, seq_key
from util.errors import RecordStoreError
from util.functions import to_number
import logging

logger = logging.getLogger(__name__)

Predicate = Callable[[Record], bool]

_MAX_TX_RETRIES = 5


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def contains(field: str, needle: str) -> Predicate:
    """Case-insensitive substring match on one text field."""
    wanted = needle.strip().lower()

    def _match(row: Record) -> bool:
        value = row.get(field)
        return isinstance(value, str) and wanted in value.lower()

    return _match


def equals(**fields: Any) -> Predicate:
    def _match(row: Record) -> bool:
        return all(row.get(k) == v for k, v in fields.items())

    return _match


class RecordRepository(Protocol):
    async def insert(self, table: Table, row: Record) -> Record: ...

    async def get(self, table: Table, row_id: int) -> Optional[Record]: ...

    async def find(
        self, table: Table, predicate: Optional[Predicate] = None, limit: Optional[int] = None
    ) -> List[Record]: ...

    async def find_latest(
        self, table: Table, predicate: Optional[Predicate] = None
    ) -> Optional[Record]: ...

    async def update_by_id(
        self, table: Table, row_id: int, changes: Record
    ) -> Optional[Record]: ...

    async def update_by_match(
        self, table: Table, predicate: Predicate, changes: Record
    ) -> Optional[Record]: ...

    async def delete_by_id(self, table: Table, row_id: int) -> Optional[Record]: ...

    async def delete_by_match(self, table: Table, predicate: Predicate) -> List[Record]: ...

    async def increment(
        self, table: Table, row_id: int, field: str, amount: int | float
    ) -> Optional[Record]: ...


@contextmanager
def _store_errors(op: str, table: Table) -> Iterator[None]:
    try:
        yield
    except (RedisError, OSError) as e:
        logger.error("store.%s.error table=%s err=%s", op, table.value, type(e).__name__)
        raise RecordStoreError(f"{op} on {table.value} failed: {e}") from e
    except ValueError as e:
        # unreadable JSON in a row
        logger.error("store.%s.corrupt table=%s err=%s", op, table.value, e)
        raise RecordStoreError(f"{op} on {table.value} read a corrupt row") from e


class RedisRecordRepository:
    """
    Small table store on Redis.

    Layout per table:
    - <root>:<table>:<id>     JSON row
    - <root>:<table>:seq      INCR counter for ids
    - <root>:<table>:index    sorted set of ids (score = id), i.e. creation order
    Every Redis failure surfaces as RecordStoreError. Row mutations are
    WATCH/MULTI transactions.
    """

    def __init__(
        self,
        client_factory: Callable[[], Awaitable[Redis]] = get_redis,
        root: str = ROOT,
    ) -> None:
        self._client_factory = client_factory
        self._root = root

    async def _client(self) -> Redis:
        return await self._client_factory()

    def _key(self, table: Table, row_id: int) -> str:
        return row_key(table, row_id, self._root)

    @staticmethod
    def _dump(row: Record) -> str:
        return json.dumps(row, separators=(",", ":"), default=str)

    # ---------------- Core CRUD ----------------

    async def insert(self, table: Table, row: Record) -> Record:
        with _store_errors("insert", table):
            r = await self._client()
            row_id = int(await r.incr(seq_key(table, self._root)))
            ts = now_iso()
            stored = {**row, "id": row_id, "created_at": ts, "updated_at": ts}
            async with r.pipeline(transaction=True) as pipe:
                pipe.set(self._key(table, row_id), self._dump(stored))
                pipe.zadd(index_key(table, self._root), {str(row_id): row_id})
                await pipe.execute()
        logger.debug("store.insert table=%s id=%d", table.value, row_id)
        return stored

    async def get(self, table: Table, row_id: int) -> Optional[Record]:
        with _store_errors("get", table):
            r = await self._client()
            raw = await r.get(self._key(table, row_id))
            return json.loads(raw) if raw is not None else None

    async def find(
        self, table: Table, predicate: Optional[Predicate] = None, limit: Optional[int] = None
    ) -> List[Record]:
        """Rows matching `predicate`, newest first."""
        with _store_errors("find", table):
            r = await self._client()
            ids = await r.zrevrange(index_key(table, self._root), 0, -1)
            if not ids:
                return []
            raws = await r.mget([self._key(table, int(i)) for i in ids])
            rows: List[Record] = []
            for raw in raws:
                if raw is None:
                    # index entry outlived its row
                    continue
                row = json.loads(raw)
                if predicate is None or predicate(row):
                    rows.append(row)
                    if limit is not None and len(rows) >= limit:
                        break
            return rows

    async def find_latest(
        self, table: Table, predicate: Optional[Predicate] = None
    ) -> Optional[Record]:
        rows = await self.find(table, predicate, limit=1)
        return rows[0] if rows else None

    async def _mutate(
        self, table: Table, row_id: int, op: str, apply: Callable[[Record], None]
    ) -> Optional[Record]:
        """
        Read-modify-write one row under WATCH/MULTI, retrying on conflict.
        A row that is missing (or deleted mid-flight) is left absent and None is returned.
        """
        key = self._key(table, row_id)
        with _store_errors(op, table):
            r = await self._client()
            async with r.pipeline(transaction=True) as pipe:
                for _ in range(_MAX_TX_RETRIES):
                    try:
                        await pipe.watch(key)
                        raw = await pipe.get(key)
                        if raw is None:
                            await pipe.unwatch()
                            return None
                        row = json.loads(raw)
                        apply(row)
                        row["updated_at"] = now_iso()
                        pipe.multi()
                        pipe.set(key, self._dump(row), xx=True)
                        await pipe.execute()
                        return row
                    except WatchError:
                        logger.debug("store.%s.retry table=%s id=%d", op, table.value, row_id)
                        continue
        raise RecordStoreError(f"{op} on {table.value} kept conflicting")

    async def update_by_id(
        self, table: Table, row_id: int, changes: Record
    ) -> Optional[Record]:
        def apply(row: Record) -> None:
            row.update({k: v for k, v in changes.items() if k not in ("id", "created_at")})

        row = await self._mutate(table, row_id, "update", apply)
        if row is not None:
            logger.debug(
                "store.update table=%s id=%d keys=%s", table.value, row_id, sorted(changes)
            )
        return row

    async def update_by_match(
        self, table: Table, predicate: Predicate, changes: Record
    ) -> Optional[Record]:
        """Update the most recent matching row only."""
        latest = await self.find_latest(table, predicate)
        if latest is None:
            return None
        return await self.update_by_id(table, int(latest["id"]), changes)

    async def delete_by_id(self, table: Table, row_id: int) -> Optional[Record]:
        row = await self.get(table, row_id)
        if row is None:
            return None
        with _store_errors("delete", table):
            r = await self._client()
            async with r.pipeline(transaction=True) as pipe:
                pipe.delete(self._key(table, row_id))
                pipe.zrem(index_key(table, self._root), str(row_id))
                await pipe.execute()
        return row

    async def delete_by_match(self, table: Table, predicate: Predicate) -> List[Record]:
        """Delete every matching row; returns what was removed."""
        rows = await self.find(table, predicate)
        if not rows:
            return []
        with _store_errors("delete", table):
            r = await self._client()
            async with r.pipeline(transaction=True) as pipe:
                for row in rows:
                    pipe.delete(self._key(table, int(row["id"])))
                pipe.zrem(index_key(table, self._root), *[str(row["id"]) for row in rows])
                await pipe.execute()
        logger.debug("store.delete table=%s n=%d", table.value, len(rows))
        return rows

    async def increment(
        self, table: Table, row_id: int, field: str, amount: int | float
    ) -> Optional[Record]:
        """
        Atomically add `amount` to a numeric field.
        Returns the updated row, or None when the row is gone.
        """

        def apply(row: Record) -> None:
            row[field] = (to_number(row.get(field)) or 0) + amount

        return await self._mutate(table, row_id, "increment", apply)


def get_record_repository() -> RecordRepository:
    return RedisRecordRepository()
