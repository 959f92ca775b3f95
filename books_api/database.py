"""
MongoDB access layer for the book store API.
Owns the client connection and the repositories over the books and users collections.
"""

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from bson import ObjectId
from bson.errors import BSONError
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError, PyMongoError

from books_api.errors import AlreadyExists, InvalidDocument, NotFound, StoreUnavailable
from books_api.filters import FilterExpression
from books_api.models import Book, BookIn, UserDocument
from utilities.config import StoreSettings
from utilities.logger import get_logger

logger = get_logger(__name__)


@contextmanager
def driver_errors(operation: str, **context: Any) -> Iterator[None]:
    """
    Translate driver exceptions into API errors.

    Duplicate keys become AlreadyExists, documents that cannot be encoded as
    BSON become InvalidDocument and any other driver failure StoreUnavailable.
    """
    try:
        yield
    except DuplicateKeyError as e:
        logger.warning("Duplicate key", operation=operation, **context)
        raise AlreadyExists("A document with this identifier already exists") from e
    except PyMongoError as e:
        logger.error("Document store operation failed", operation=operation, error=str(e), **context)
        raise StoreUnavailable(f"{operation} failed: {e}") from e
    except (BSONError, OverflowError) as e:
        logger.warning("Document cannot be encoded", operation=operation, error=str(e), **context)
        raise InvalidDocument(f"Document cannot be stored: {e}") from e


def _object_id(book_id: str) -> ObjectId:
    """Parse an identifier; anything that is not an ObjectId cannot exist in the store."""
    if not ObjectId.is_valid(book_id):
        raise NotFound(f"Book with ID '{book_id}' not found")
    return ObjectId(book_id)


class MongoDBManager:
    """
    Async MongoDB connection for the book store.
    Resolves the database and both collections from the store settings.
    """

    def __init__(self, settings: StoreSettings):
        """
        Initialize MongoDB manager.

        Args:
            settings: Connection string, database and collection names
        """
        self.settings = settings
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self.books_collection: Optional[AsyncIOMotorCollection] = None
        self.users_collection: Optional[AsyncIOMotorCollection] = None

    async def connect(self) -> None:
        """Establish connection to MongoDB."""
        self.client = AsyncIOMotorClient(self.settings.mongodb_url)
        self.database = self.client[self.settings.mongodb_database]
        self.books_collection = self.database[self.settings.books_collection_name]
        self.users_collection = self.database[self.settings.users_collection_name]

        with driver_errors("connect"):
            await self.database.command("ping")
        logger.info("Successfully connected to MongoDB",
                    database=self.settings.mongodb_database,
                    books_collection=self.settings.books_collection_name,
                    users_collection=self.settings.users_collection_name)

    async def disconnect(self) -> None:
        """Close MongoDB connection."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    async def health_check(self) -> Dict[str, Any]:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        if self.database is None:
            return {"status": "unhealthy", "error": "not connected"}
        try:
            await self.database.command("ping")
            return {"status": "healthy"}
        except PyMongoError as e:
            logger.error("Database health check failed", error=str(e))
            return {"status": "unhealthy", "error": str(e)}


class BookRepository:
    """CRUD operations over the books collection."""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def find(self, expression: FilterExpression, skip: int, limit: int) -> List[Book]:
        """
        Get one page of books matching the filter.

        Args:
            expression: Constraints the books must satisfy
            skip: Number of matching books to pass over
            limit: Maximum number of books to return
        """
        documents = await self._find_documents(expression.to_query(), skip, limit)
        return [Book.from_document(document) for document in documents]

    async def _find_documents(self, query: Dict[str, Any], skip: int, limit: int) -> List[Dict[str, Any]]:
        with driver_errors("find", query=query, skip=skip, limit=limit):
            cursor = self.collection.find(query).skip(skip).limit(limit)
            documents = await cursor.to_list(length=limit)

        logger.debug("Books found", query=query, skip=skip, limit=limit, count=len(documents))
        return documents

    async def find_page_in_process(
        self,
        expression: FilterExpression,
        skip: int,
        limit: int
    ) -> List[Book]:
        """
        Get one unfiltered page of books, then keep those matching the filter.

        Filtering happens after paging, so a page can hold fewer than `limit`
        books even when more matches exist further on.
        """
        page = await self._find_documents({}, skip, limit)
        return [Book.from_document(document) for document in page if expression.matches(document)]

    async def find_by_id(self, book_id: str) -> Book:
        """
        Get a single book by ID.

        Raises:
            NotFound: no book has this identifier
        """
        object_id = _object_id(book_id)
        with driver_errors("find_by_id", book_id=book_id):
            document = await self.collection.find_one({"_id": object_id})

        if document is None:
            raise NotFound(f"Book with ID '{book_id}' not found")
        return Book.from_document(document)

    async def insert(self, book: BookIn) -> Book:
        """
        Insert a book, assigning a new identifier when none is given.

        Returns:
            The stored book with its identifier
        """
        object_id = ObjectId(book.id) if book.id else ObjectId()
        document = {"_id": object_id, **book.to_document()}
        with driver_errors("insert", book_id=str(object_id)):
            await self.collection.insert_one(document)

        logger.debug("Book inserted", book_id=str(object_id), name=book.name)
        return Book.from_document(document)

    async def replace(self, book_id: str, book: BookIn) -> Book:
        """
        Replace the book stored under `book_id`; the identifier is kept.

        Raises:
            NotFound: no book has this identifier; nothing is inserted
        """
        object_id = _object_id(book_id)
        with driver_errors("replace", book_id=book_id):
            result = await self.collection.replace_one({"_id": object_id}, book.to_document())

        if result.matched_count == 0:
            raise NotFound(f"Book with ID '{book_id}' not found")
        logger.debug("Book replaced", book_id=book_id)
        return Book(id=book_id, **book.model_dump(exclude={"id"}))

    async def delete(self, book_id: str) -> None:
        """
        Delete the book stored under `book_id`.

        Raises:
            NotFound: no book has this identifier
        """
        object_id = _object_id(book_id)
        with driver_errors("delete", book_id=book_id):
            result = await self.collection.delete_one({"_id": object_id})

        if result.deleted_count == 0:
            raise NotFound(f"Book with ID '{book_id}' not found")
        logger.debug("Book deleted", book_id=book_id)


def _public_user(document: Dict[str, Any]) -> UserDocument:
    user = {"id": str(document["_id"])}
    user.update((key, value) for key, value in document.items() if key not in ("_id", "id"))
    return user


class UserRepository:
    """Schemaless documents in the users collection."""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def insert(self, user: UserDocument) -> UserDocument:
        """Store the document as given and return it with its identifier."""
        document = dict(user)
        with driver_errors("insert_user"):
            await self.collection.insert_one(document)

        logger.debug("User inserted", user_id=str(document["_id"]))
        return _public_user(document)

    async def find_all(self) -> List[UserDocument]:
        """Every document in the collection, unpaginated."""
        with driver_errors("find_users"):
            documents = await self.collection.find({}).to_list(length=None)
        return [_public_user(document) for document in documents]
