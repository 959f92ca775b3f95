"""
FastAPI main application for the Books API.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from fastapi import Body, Depends, FastAPI, HTTPException, Path, Query, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from books_api.config import config as api_config
from books_api.database import BookRepository, MongoDBManager, UserRepository
from books_api.errors import BooksAPIError, InvalidFilterSyntax, StoreUnavailable
from books_api.filters import (
    DEFAULT_PAGE_SIZE, FilterMode, build_filter, build_structured_filter,
    compute_skip, create_json_params, parse_delimited_filter
)
from books_api.models import Book, BookIn, ErrorResponse, HealthResponse, PageRequest, UserDocument
from utilities.config import config
from utilities.logger import get_logger, setup_logging

# Setup logging
logger = get_logger(__name__)

# Set during application startup
db_manager: Optional[MongoDBManager] = None
book_repository: Optional[BookRepository] = None
user_repository: Optional[UserRepository] = None

BOOK_ID_LENGTH = 24


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    global db_manager, book_repository, user_repository

    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug
    )
    logger.info("Starting Books API")

    try:
        db_manager = MongoDBManager(config)
        await db_manager.connect()
        book_repository = BookRepository(db_manager.books_collection)
        user_repository = UserRepository(db_manager.users_collection)
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        raise

    yield

    logger.info("Shutting down Books API")
    await db_manager.disconnect()
    db_manager = book_repository = user_repository = None


app = FastAPI(
    title=api_config.api_title,
    description=api_config.api_description,
    version=api_config.api_version,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=api_config.cors_origins,
    allow_credentials=api_config.cors_allow_credentials,
    allow_methods=api_config.cors_allow_methods,
    allow_headers=api_config.cors_allow_headers,
)


def get_book_repository() -> BookRepository:
    if book_repository is None:
        raise StoreUnavailable("Database service not available")
    return book_repository


def get_user_repository() -> UserRepository:
    if user_repository is None:
        raise StoreUnavailable("Database service not available")
    return user_repository


def get_page_request(
    page_number: int = Query(0, alias="pageNumber", description="Page number (starts from 1)"),
    page_size: int = Query(DEFAULT_PAGE_SIZE, gt=0, alias="pageSize", description="Items per page"),
    keyword: Optional[str] = Query(None, description="Substring of the book name, any case"),
    category: Optional[str] = Query(None, description="Exact book category"),
) -> PageRequest:
    return PageRequest(page_number=page_number, page_size=page_size, keyword=keyword, category=category)


# Exception handlers
@app.exception_handler(BooksAPIError)
async def books_api_exception_handler(request: Request, exc: BooksAPIError):
    """Render domain errors with their status code."""
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("Request failed", error=str(exc), path=request.url.path)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=exc.error,
            detail=exc.detail,
            status_code=exc.status_code
        ).model_dump()
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=str(exc.detail),
            status_code=exc.status_code
        ).model_dump(),
        headers=exc.headers
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    logger.error("Unhandled exception", error=str(exc), path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="Internal server error",
            detail=str(exc) if config.debug else None,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        ).model_dump()
    )


# Health check endpoint
@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint."""
    db_status = "unavailable"
    if db_manager:
        health_info = await db_manager.health_check()
        db_status = health_info.get("status", "unknown")

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=api_config.api_version,
        database_status=db_status
    )


# Search endpoints
@app.get("/api/books/get-all", response_model=List[Book], tags=["Books"])
async def get_books(
    page: PageRequest = Depends(get_page_request),
    repository: BookRepository = Depends(get_book_repository)
):
    """
    Get one page of books.

    - **pageNumber**: Page number (starts from 1; lower values give the first page)
    - **pageSize**: Items per page (default 100)
    - **keyword**: Case-insensitive substring of the book name
    - **category**: Exact category
    """
    expression = build_structured_filter(page.keyword, page.category)
    return await repository.find(expression, page.skip, page.limit)


@app.get("/api/books/get-with-filter", response_model=List[Book], tags=["Books"])
async def get_books_with_filter(
    page_number: int = Query(0, alias="pageNumber"),
    page_size: int = Query(DEFAULT_PAGE_SIZE, gt=0, alias="pageSize"),
    filter_json: Optional[str] = Query(None, alias="filterJson"),
    filter_like: Optional[str] = Query(None, alias="filterLike"),
    filter_mode: FilterMode = Query(FilterMode.EQUAL, alias="filterMode"),
    repository: BookRepository = Depends(get_book_repository)
):
    """
    Get one page of books matching a filter string.

    - **filterJson**: `key:value,key:value` pairs, or a JSON object in document mode
    - **filterLike**: Extra `key:value` pairs matched as case-insensitive substrings
    - **filterMode**: How `filterJson` is read: equal (default), like or document
    """
    if filter_mode == FilterMode.STRUCTURED:
        raise InvalidFilterSyntax("filterMode must be one of: equal, like, document")

    expression = build_filter(filter_mode, text=filter_json)
    if filter_like is not None:
        expression = expression.merge(parse_delimited_filter(filter_like, FilterMode.LIKE))

    skip = compute_skip(page_number, page_size)
    return await repository.find(expression, skip, page_size)


@app.get("/api/books/get-linQ", response_model=List[Book], tags=["Books"])
async def get_books_in_process(
    page: PageRequest = Depends(get_page_request),
    repository: BookRepository = Depends(get_book_repository)
):
    """
    Get one page of books and filter it in the application.

    The page is cut before the keyword and category are applied.
    """
    expression = build_structured_filter(page.keyword, page.category)
    return await repository.find_page_in_process(expression, page.skip, page.limit)


@app.post("/api/books/create-json-params", response_class=PlainTextResponse, tags=["Books"])
async def post_json_params(category: Optional[str] = None, author: Optional[str] = None):
    """Build a JSON filter string from a category and an author."""
    return create_json_params(category, author)


# Users endpoints
@app.post("/api/books/add-user", status_code=status.HTTP_201_CREATED, tags=["Users"])
async def add_user(
    user: Dict[str, Any] = Body(...),
    repository: UserRepository = Depends(get_user_repository)
):
    """Store an arbitrary JSON object in the users collection."""
    stored = await repository.insert(user)
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=jsonable_encoder(stored, custom_encoder={ObjectId: str})
    )


@app.get("/api/books/get-user-list", tags=["Users"])
async def get_user_list(repository: UserRepository = Depends(get_user_repository)):
    """Every stored user document."""
    users: List[UserDocument] = await repository.find_all()
    return JSONResponse(content=jsonable_encoder(users, custom_encoder={ObjectId: str}))


# Single book endpoints
@app.get("/api/books/{book_id}", response_model=Book, tags=["Books"])
async def get_book(
    book_id: str = Path(..., min_length=BOOK_ID_LENGTH, max_length=BOOK_ID_LENGTH),
    repository: BookRepository = Depends(get_book_repository)
):
    """Get a single book by ID."""
    return await repository.find_by_id(book_id)


@app.post("/api/books", response_model=Book, status_code=status.HTTP_201_CREATED, tags=["Books"])
async def create_book(
    book: BookIn,
    response: Response,
    repository: BookRepository = Depends(get_book_repository)
):
    """Create a book; the Location header points at the new resource."""
    created = await repository.insert(book)
    response.headers["Location"] = app.url_path_for("get_book", book_id=created.id)
    logger.info("Book created", book_id=created.id)
    return created


@app.put("/api/books/{book_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["Books"])
async def update_book(
    book: BookIn,
    book_id: str = Path(..., min_length=BOOK_ID_LENGTH, max_length=BOOK_ID_LENGTH),
    repository: BookRepository = Depends(get_book_repository)
):
    """Replace a book; the identifier in the path wins over any in the body."""
    await repository.replace(book_id, book)
    logger.info("Book updated", book_id=book_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.delete("/api/books/{book_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["Books"])
async def delete_book(
    book_id: str = Path(..., min_length=BOOK_ID_LENGTH, max_length=BOOK_ID_LENGTH),
    repository: BookRepository = Depends(get_book_repository)
):
    """Delete a book."""
    await repository.delete(book_id)
    logger.info("Book deleted", book_id=book_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "books_api.main:app",
        host=api_config.host,
        port=api_config.port,
        reload=config.debug,
        log_level=api_config.log_level.lower()
    )
