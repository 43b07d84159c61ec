"""In-memory stand-ins for pymongo clients, so the engine runs without a live server."""

from pymongo.errors import BulkWriteError, CollectionInvalid, ServerSelectionTimeoutError
from pymongo.results import InsertManyResult

SOURCE_URI = "mongodb://source-host:27017/"
TARGET_URI = "mongodb://target-host:27017/"


class FakeCursor:
    def __init__(self, docs, fail_after=None, error=None):
        self._docs = docs
        self._fail_after = fail_after
        self._error = error
        self.fetch_size = None
        self.consumed = 0
        self.closed = False

    def batch_size(self, size):
        self.fetch_size = size
        return self

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __iter__(self):
        for doc in self._docs:
            if self._fail_after is not None and self.consumed >= self._fail_after:
                raise self._error
            self.consumed += 1
            yield doc


class FakeCollection:
    def __init__(self, name, docs=None):
        self.name = name
        self.docs = list(docs or [])
        self.insert_calls = []
        self.cursors = []
        self.read_fail_after = None
        self.read_error = None
        self.write_error = None
        self.count_error = None

    def find(self, query=None):
        cursor = FakeCursor(self.docs, self.read_fail_after, self.read_error)
        self.cursors.append(cursor)
        return cursor

    def estimated_document_count(self):
        if self.count_error is not None:
            raise self.count_error
        return len(self.docs)

    def insert_many(self, documents, ordered=True):
        documents = list(documents)
        self.insert_calls.append(len(documents))
        if self.write_error is not None:
            raise self.write_error
        existing = {doc["_id"] for doc in self.docs}
        for index, doc in enumerate(documents):
            if doc["_id"] in existing:
                raise BulkWriteError({
                    "nInserted": index,
                    "writeErrors": [{"index": index, "code": 11000, "errmsg": "E11000 duplicate key error"}],
                })
            existing.add(doc["_id"])
            self.docs.append(doc)
        return InsertManyResult([doc["_id"] for doc in documents], acknowledged=True)


class FakeDatabase:
    def __init__(self, name):
        self.name = name
        self.collections = {}
        self.create_calls = []
        self.create_error = None

    def add_collection(self, name, docs=None):
        self.collections[name] = FakeCollection(name, docs)
        return self.collections[name]

    def list_collection_names(self, filter=None):
        names = list(self.collections)
        if filter:
            names = [name for name in names if name == filter["name"]]
        return names

    def create_collection(self, name):
        self.create_calls.append(name)
        if self.create_error is not None:
            raise self.create_error
        if name in self.collections:
            raise CollectionInvalid(f"collection {name} already exists")
        return self.add_collection(name)

    def __getitem__(self, name):
        # Like pymongo, a handle to a collection that does not exist yet is allowed
        if name not in self.collections:
            return FakeCollection(name)
        return self.collections[name]


class FakeAdmin:
    def __init__(self, client):
        self._client = client

    def command(self, name):
        if self._client.unreachable:
            raise ServerSelectionTimeoutError(f"{self._client.uri}: connection refused")
        return {"ok": 1.0}


class FakeClient:
    def __init__(self, uri):
        self.uri = uri
        self.databases = {}
        self.unreachable = False
        self.options = None
        self.close_calls = 0
        self.admin = FakeAdmin(self)

    def __getitem__(self, name):
        if name not in self.databases:
            self.databases[name] = FakeDatabase(name)
        return self.databases[name]

    def close(self):
        self.close_calls += 1


def make_docs(count, prefix="doc"):
    return [{"_id": f"{prefix}-{i}", "seq": i, "payload": {"n": i}} for i in range(count)]


