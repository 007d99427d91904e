import threading

import mongomock
import pytest

from database import ensure_indexes, get_db
from main import app
from storage import LocalAssetStore, get_asset_store
from tests.utils import insert_user


class RecordingAssetStore(LocalAssetStore):
    """Local store that remembers removals and the threads that stored files."""

    def __init__(self, root):
        super().__init__(root)
        self.removed = []
        self.store_threads = []

    def store(self, local_path, folder):
        self.store_threads.append(threading.get_ident())
        return super().store(local_path, folder)

    def remove(self, public_id):
        self.removed.append(public_id)
        return super().remove(public_id)


@pytest.fixture
def mongo_db():
    database = mongomock.MongoClient()["videotube_test"]
    ensure_indexes(database)
    return database


@pytest.fixture
def asset_store(tmp_path):
    return RecordingAssetStore(str(tmp_path / "uploads"))


@pytest.fixture(autouse=True)
def override_dependencies(mongo_db, asset_store):
    app.dependency_overrides[get_db] = lambda: mongo_db
    app.dependency_overrides[get_asset_store] = lambda: asset_store
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def alice(mongo_db):
    return insert_user(mongo_db, "alice")


@pytest.fixture
def bob(mongo_db):
    return insert_user(mongo_db, "bob")
