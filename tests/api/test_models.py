"""
Unit tests for Pydantic models and settings.
"""

import pytest
from bson import ObjectId
from pydantic import ValidationError

from books_api.models import Book, BookIn, PageRequest
from utilities.config import StoreSettings


class TestPageRequest:
    """Test cases for PageRequest model."""

    def test_defaults(self):
        page = PageRequest()

        assert page.page_number == 0
        assert page.page_size == 100
        assert page.keyword is None
        assert page.category is None
        assert page.skip == 0
        assert page.limit == 100

    def test_aliases(self):
        page = PageRequest(pageNumber=3, pageSize=10)
        assert page.skip == 20
        assert page.limit == 10

    def test_negative_page_number_skips_nothing(self):
        assert PageRequest(page_number=-5, page_size=10).skip == 0

    def test_search_terms_are_trimmed(self):
        page = PageRequest(keyword="  war ", category="\tHistory\n")
        assert page.keyword == "war"
        assert page.category == "History"

    def test_blank_search_terms_are_dropped(self):
        page = PageRequest(keyword="   ", category="")
        assert page.keyword is None
        assert page.category is None

    def test_page_size_must_be_positive(self):
        with pytest.raises(ValidationError):
            PageRequest(page_size=0)


class TestBook:
    """Test cases for book models."""

    def test_from_document(self):
        object_id = ObjectId()
        book = Book.from_document({
            "_id": object_id,
            "Name": "Dune",
            "Price": 9.99,
            "Category": "Science Fiction",
            "Author": "Herbert",
        })

        assert book.id == str(object_id)
        assert book.name == "Dune"
        assert book.price == 9.99

    def test_to_document_has_no_identifier(self, sample_book_in):
        assert sample_book_in.to_document() == {
            "Name": "The Hobbit",
            "Price": 12.5,
            "Category": "Fiction",
            "Author": "Tolkien",
        }

    def test_book_in_accepts_valid_identifier(self):
        book = BookIn(id="64b7f0c2a1b2c3d4e5f60718", name="Dune", price=1, category="SF", author="Herbert")
        assert book.id == "64b7f0c2a1b2c3d4e5f60718"

    def test_book_in_rejects_invalid_identifier(self):
        with pytest.raises(ValidationError) as exc_info:
            BookIn(id="not-an-object-id", name="Dune", price=1, category="SF", author="Herbert")
        assert "24-character hexadecimal" in str(exc_info.value)

    def test_missing_fields(self):
        with pytest.raises(ValidationError):
            BookIn(name="Dune")


class TestStoreSettings:
    """Test cases for store settings."""

    def test_defaults(self, monkeypatch):
        for name in ("MONGODB_URL", "MONGODB_DATABASE", "BOOKS_COLLECTION_NAME", "USERS_COLLECTION_NAME"):
            monkeypatch.delenv(name, raising=False)

        settings = StoreSettings(_env_file=None)

        assert settings.mongodb_url == "mongodb://localhost:27017"
        assert settings.mongodb_database == "BookStoreDb"
        assert settings.books_collection_name == "Books"
        assert settings.users_collection_name == "Users"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("MONGODB_DATABASE", "Library")
        monkeypatch.setenv("BOOKS_COLLECTION_NAME", "Catalogue")
        monkeypatch.setenv("LOG_FORMAT", "Console")

        settings = StoreSettings(_env_file=None)

        assert settings.mongodb_database == "Library"
        assert settings.books_collection_name == "Catalogue"
        assert settings.log_format == "console"

    def test_settings_are_immutable(self):
        settings = StoreSettings(_env_file=None)
        with pytest.raises(ValidationError):
            settings.mongodb_database = "Other"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            StoreSettings(_env_file=None, log_level="LOUD")

    def test_blank_collection_name(self):
        with pytest.raises(ValidationError):
            StoreSettings(_env_file=None, users_collection_name="  ")

    def test_debug_from_environment(self, monkeypatch):
        monkeypatch.setenv("DEBUG", "true")
        assert StoreSettings(_env_file=None).debug is True
