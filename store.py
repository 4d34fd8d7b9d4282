import json
import logging
import re
import uuid
from datetime import datetime, timezone
from typing import List, Union

import asyncpg
from pydantic import BaseModel, ConfigDict, Field

from config import PREDICTIONS_COLLECTION
from errors import ErrorKind, Failure

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class StoreNotConnected(RuntimeError):
    pass


def _table(collection):
    if not _IDENTIFIER.match(collection):
        raise ValueError(f"invalid collection name: {collection!r}")
    return collection


class PostgresDocumentStore:
    """Schema-less documents kept as JSONB rows, one table per collection."""

    def __init__(self, settings):
        self.settings = settings
        self.pool = None

    async def connect(self):
        self.pool = await asyncpg.create_pool(
            host=self.settings.db_host,
            port=self.settings.db_port,
            user=self.settings.db_user,
            password=self.settings.db_password,
            database=self.settings.db_name,
        )

    async def close(self):
        if self.pool is not None:
            await self.pool.close()
            self.pool = None

    def _require_pool(self):
        if self.pool is None:
            raise StoreNotConnected("document store is not connected")
        return self.pool

    async def ensure_collection(self, collection):
        pool = self._require_pool()
        await pool.execute(f'''
        CREATE TABLE IF NOT EXISTS {_table(collection)} (
            id TEXT PRIMARY KEY,
            data JSONB NOT NULL
        )
        ''')

    async def create_document(self, collection, data):
        pool = self._require_pool()
        doc_id = uuid.uuid4().hex
        document = dict(data, id=doc_id)

        await pool.execute(f'''
        INSERT INTO {_table(collection)} (id, data) VALUES ($1, $2::jsonb)
        ''', doc_id, json.dumps(document))

        return doc_id

    async def list_documents(self, collection):
        pool = self._require_pool()
        rows = await pool.fetch(f'SELECT id, data FROM {_table(collection)}')
        return [(row["id"], json.loads(row["data"])) for row in rows]


class PredictionRecord(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    result: str
    suggestion: str
    created_at: str = Field(alias="createdAt")

    def to_document(self):
        return self.model_dump(by_alias=True)


def utc_timestamp():
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class PredictionStore:
    def __init__(self, documents, collection=PREDICTIONS_COLLECTION):
        self.documents = documents
        self.collection = collection

    async def connect(self):
        await self.documents.connect()
        await self.documents.ensure_collection(self.collection)

    async def close(self):
        await self.documents.close()

    async def save(self, result: str, suggestion: str) -> Union[PredictionRecord, Failure]:
        created_at = utc_timestamp()
        try:
            doc_id = await self.documents.create_document(self.collection, {
                "result": result,
                "suggestion": suggestion,
                "createdAt": created_at,
            })
        except Exception:
            logger.exception("Failed to save prediction")
            return Failure(ErrorKind.STORE_UNAVAILABLE)

        return PredictionRecord(id=doc_id, result=result, suggestion=suggestion, created_at=created_at)

    async def list_all(self) -> Union[List[PredictionRecord], Failure]:
        try:
            documents = await self.documents.list_documents(self.collection)
            return [PredictionRecord(**dict(data, id=doc_id)) for doc_id, data in documents]
        except Exception:
            logger.exception("Failed to list prediction histories")
            return Failure(ErrorKind.STORE_UNAVAILABLE)
