"""
Pytest configuration and shared fixtures.
"""

import re
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from books_api.database import BookRepository, UserRepository
from books_api.models import Book, BookIn


class FakeCursor:
    """Cursor over an in-memory result list with the motor chaining API."""

    def __init__(self, documents):
        self._documents = documents
        self._skip = 0
        self._limit = 0

    def skip(self, count):
        self._skip = count
        return self

    def limit(self, count):
        self._limit = count
        return self

    async def to_list(self, length=None):
        documents = self._documents[self._skip:]
        if self._limit:
            documents = documents[:self._limit]
        if length is not None:
            documents = documents[:length]
        return [dict(document) for document in documents]


class FakeCollection:
    """In-memory stand-in for the handful of collection methods the repositories call."""

    def __init__(self):
        self.documents = []

    @staticmethod
    def _matches(document, query):
        for field, condition in query.items():
            value = document.get(field)
            if isinstance(condition, dict) and "$regex" in condition:
                flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
                if not isinstance(value, str) or not re.search(condition["$regex"], value, flags):
                    return False
            elif value != condition:
                return False
        return True

    def _index_of(self, query):
        for index, document in enumerate(self.documents):
            if self._matches(document, query):
                return index
        return None

    async def insert_one(self, document):
        if "_id" not in document:
            document["_id"] = ObjectId()
        elif any(existing["_id"] == document["_id"] for existing in self.documents):
            raise DuplicateKeyError("duplicate key error")
        self.documents.append(dict(document))
        return SimpleNamespace(inserted_id=document["_id"])

    async def find_one(self, query):
        index = self._index_of(query)
        return None if index is None else dict(self.documents[index])

    def find(self, query):
        return FakeCursor([document for document in self.documents if self._matches(document, query)])

    async def replace_one(self, query, replacement):
        index = self._index_of(query)
        if index is None:
            return SimpleNamespace(matched_count=0, modified_count=0)
        self.documents[index] = {"_id": self.documents[index]["_id"], **replacement}
        return SimpleNamespace(matched_count=1, modified_count=1)

    async def delete_one(self, query):
        index = self._index_of(query)
        if index is None:
            return SimpleNamespace(deleted_count=0)
        del self.documents[index]
        return SimpleNamespace(deleted_count=1)


@pytest.fixture
def books_collection():
    """Empty in-memory books collection."""
    return FakeCollection()


@pytest.fixture
def book_repository(books_collection):
    """Book repository over the in-memory collection."""
    return BookRepository(books_collection)


@pytest.fixture
def user_repository():
    """User repository over an in-memory collection."""
    return UserRepository(FakeCollection())


@pytest.fixture
def sample_book_in():
    """Create sample book payload for testing."""
    return BookIn(
        name="The Hobbit",
        price=12.5,
        category="Fiction",
        author="Tolkien"
    )


@pytest.fixture
def sample_book():
    """Create a stored sample book for testing."""
    return Book(
        id="64b7f0c2a1b2c3d4e5f60718",
        name="The Hobbit",
        price=12.5,
        category="Fiction",
        author="Tolkien"
    )


@pytest.fixture
def mock_book_repository():
    """Create a mock book repository for testing."""
    repository = AsyncMock(spec=BookRepository)
    repository.find.return_value = []
    repository.find_page_in_process.return_value = []
    return repository


@pytest.fixture
def mock_user_repository():
    """Create a mock user repository for testing."""
    repository = AsyncMock(spec=UserRepository)
    repository.find_all.return_value = []
    return repository
