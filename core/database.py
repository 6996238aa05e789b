from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient

from core.config import settings
from core.errors import NotFoundError, StaleVersionError

_client: Optional[AsyncIOMotorClient] = None

def get_client() -> AsyncIOMotorClient:
    global _client
    if _client is None:
        _client = AsyncIOMotorClient(settings.MONGO_URI)
    return _client

def get_db():
    """FastAPI dependency returning the application database."""
    return get_client()[settings.DB_NAME]

def close_client():
    global _client
    if _client is not None:
        _client.close()
        _client = None

async def versioned_update(collection, doc_id: str, expected_version: int, changes: dict) -> dict:
    """
    Apply `changes` only if the stored document still has `expected_version`.
    The version is bumped atomically with the write.

    Returns the updated document.
    Raises NotFoundError if the document is gone, StaleVersionError if another
    writer got there first.
    """
    result = await collection.update_one(
        {"_id": doc_id, "version": expected_version},
        {"$set": changes, "$inc": {"version": 1}}
    )
    if result.matched_count == 0:
        current = await collection.find_one({"_id": doc_id}, {"version": 1})
        if current is None:
            raise NotFoundError("Document not found")
        raise StaleVersionError(
            f"Document was modified (expected version {expected_version}, found {current.get('version')})"
        )
    return await collection.find_one({"_id": doc_id})

async def paginate(cursor_factory, count_query, collection, page: int, limit: int):
    """
    Skip/limit pagination. `cursor_factory` returns a fresh sorted cursor.
    Returns (documents, total, total_pages).
    """
    total = await collection.count_documents(count_query)
    skip = (page - 1) * limit
    docs = await cursor_factory().skip(skip).limit(limit).to_list(length=limit)
    total_pages = (total + limit - 1) // limit if limit else 0
    return docs, total, total_pages
