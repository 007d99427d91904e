"""
Asset store backed by the local upload directory.

Uploaded files are first staged under <root>/tmp, then moved into
<root>/<folder>/ and served by the app under /static.
"""

import asyncio
import os
import shutil
from typing import Optional

from bson import ObjectId
from fastapi import UploadFile
from loguru import logger

UPLOAD_DIR = os.getenv("UPLOAD_DIR", os.path.join(os.getcwd(), "uploads"))
STATIC_URL = "/static"


class LocalAssetStore:
    def __init__(self, root: str, base_url: str = STATIC_URL):
        self.root = os.path.abspath(root)
        self.base_url = base_url.rstrip("/")
        self.staging_dir = os.path.join(self.root, "tmp")
        os.makedirs(self.staging_dir, exist_ok=True)

    def _path(self, public_id: str) -> str:
        path = os.path.abspath(os.path.join(self.root, public_id))
        if os.path.commonpath([path, self.root]) != self.root:
            raise ValueError(f"Asset id escapes the store: {public_id}")
        return path

    async def stage(self, upload: UploadFile, default_ext: str = "") -> str:
        ext = os.path.splitext(upload.filename or "")[1] or default_ext
        local_path = os.path.join(self.staging_dir, f"{ObjectId()}{ext}")
        data = await upload.read()
        await asyncio.to_thread(self._write, local_path, data)
        return local_path

    @staticmethod
    def _write(path: str, data: bytes) -> None:
        with open(path, "wb") as f:
            f.write(data)

    def discard_staged(self, *local_paths: Optional[str]) -> None:
        """Drop staged files that were never stored."""
        for local_path in local_paths:
            if local_path and os.path.exists(local_path):
                os.remove(local_path)

    def store(self, local_path: str, folder: str) -> dict:
        """Move a staged file into the store. The staged file is gone either way."""
        try:
            name = os.path.basename(local_path)
            public_id = f"{folder}/{name}"
            target = self._path(public_id)
            os.makedirs(os.path.dirname(target), exist_ok=True)
            shutil.move(local_path, target)
        finally:
            if os.path.exists(local_path):
                os.remove(local_path)
        logger.debug(f"Stored asset {public_id}")
        return {"url": f"{self.base_url}/{public_id}", "public_id": public_id, "duration": None}

    def remove(self, public_id: Optional[str]) -> bool:
        if not public_id:
            return False
        try:
            path = self._path(public_id)
        except ValueError as e:
            logger.warning(str(e))
            return False
        if not os.path.isfile(path):
            return False
        os.remove(path)
        logger.debug(f"Removed asset {public_id}")
        return True


asset_store = LocalAssetStore(UPLOAD_DIR)


def get_asset_store() -> LocalAssetStore:
    return asset_store
