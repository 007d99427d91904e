"""
MongoDB connection and collection helpers.

Collection names are the lowercase model names from schemas.py:
user, video, comment, like, subscription, playlist.
"""

import os
from datetime import datetime, timezone
from typing import Optional

from bson import ObjectId
from loguru import logger
from pymongo import ASCENDING, DESCENDING, MongoClient, ReturnDocument
from pymongo.errors import DuplicateKeyError

from responses import BadRequestError

DATABASE_URL = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "videotube")

USER = "user"
VIDEO = "video"
COMMENT = "comment"
LIKE = "like"
SUBSCRIPTION = "subscription"
PLAYLIST = "playlist"

# MongoClient connects lazily, so importing this module never blocks
client = MongoClient(DATABASE_URL, tz_aware=True)
db = client[DATABASE_NAME]


def get_db():
    return db


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def objid(id_str: Optional[str], name: str = "id") -> ObjectId:
    if isinstance(id_str, ObjectId):
        return id_str
    if not id_str or not ObjectId.is_valid(id_str):
        raise BadRequestError(f"Invalid {name} id")
    return ObjectId(id_str)


def ensure_indexes(database) -> None:
    database[USER].create_index("username", unique=True)
    database[USER].create_index("email", unique=True)
    database[VIDEO].create_index([("owner", ASCENDING), ("createdAt", DESCENDING)])
    database[VIDEO].create_index([("isPublished", ASCENDING), ("createdAt", DESCENDING)])
    database[COMMENT].create_index([("video", ASCENDING), ("createdAt", DESCENDING)])
    # One like per (target, user) and one subscription per (subscriber, channel)
    database[LIKE].create_index(
        [("targetType", ASCENDING), ("target", ASCENDING), ("likedBy", ASCENDING)], unique=True
    )
    database[LIKE].create_index([("likedBy", ASCENDING), ("createdAt", DESCENDING)])
    database[SUBSCRIPTION].create_index([("subscriber", ASCENDING), ("channel", ASCENDING)], unique=True)
    database[SUBSCRIPTION].create_index([("channel", ASCENDING), ("createdAt", DESCENDING)])
    database[PLAYLIST].create_index([("owner", ASCENDING), ("createdAt", DESCENDING)])
    logger.info(f"Indexes ensured on database '{database.name}'")


def create_document(database, collection_name: str, data: dict) -> dict:
    doc = dict(data)
    ts = utcnow()
    doc.setdefault("createdAt", ts)
    doc["updatedAt"] = ts
    doc["_id"] = database[collection_name].insert_one(doc).inserted_id
    return doc


def update_document(database, collection_name: str, _id: ObjectId, update: dict) -> Optional[dict]:
    """Apply an update operator document and return the document after it, or None."""
    update = dict(update)
    update["$set"] = {**update.get("$set", {}), "updatedAt": utcnow()}
    return database[collection_name].find_one_and_update(
        {"_id": _id}, update, return_document=ReturnDocument.AFTER
    )


def toggle_document(database, collection_name: str, key: dict) -> bool:
    """
    Flip presence of the document identified by `key`.

    Deletes first and only inserts when nothing was deleted. The unique index
    on `key` turns a concurrent double insert into a DuplicateKeyError, which
    means the record is present. Returns True when the record now exists.
    """
    if database[collection_name].delete_one(key).deleted_count:
        return False
    try:
        create_document(database, collection_name, key)
    except DuplicateKeyError:
        logger.info(f"Concurrent toggle on {collection_name} {key}, record already present")
    return True
