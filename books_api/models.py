"""
API models and schemas for the FastAPI application.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, field_validator

from books_api.filters import (
    AUTHOR_FIELD, CATEGORY_FIELD, DEFAULT_PAGE_SIZE, NAME_FIELD, PRICE_FIELD, compute_skip
)

# Users are stored as-is; insertion order of the fields is preserved.
UserDocument = Dict[str, Any]


class BookFields(BaseModel):
    """Fields shared by every representation of a book."""
    name: str = Field(..., description="Book title")
    price: float = Field(..., description="Book price")
    category: str = Field(..., description="Book category")
    author: str = Field(..., description="Book author")

    def to_document(self) -> Dict[str, Any]:
        """Document body as stored in the books collection, without `_id`."""
        return {
            NAME_FIELD: self.name,
            PRICE_FIELD: self.price,
            CATEGORY_FIELD: self.category,
            AUTHOR_FIELD: self.author,
        }


class BookIn(BookFields):
    """Payload accepted when creating or replacing a book."""
    id: Optional[str] = Field(None, description="Optional 24-character identifier")

    @field_validator('id')
    @classmethod
    def validate_id(cls, v):
        """Client supplied identifiers must be valid ObjectIds."""
        if v is not None and not ObjectId.is_valid(v):
            raise ValueError('id must be a 24-character hexadecimal string')
        return v

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "The Hobbit",
                "price": 12.5,
                "category": "Fiction",
                "author": "J. R. R. Tolkien",
            }
        }
    )


class Book(BookFields):
    """Book response model for API."""
    id: str = Field(..., description="Unique book identifier")

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "Book":
        """Build a book from a raw collection document."""
        return cls(
            id=str(document["_id"]),
            name=document.get(NAME_FIELD),
            price=document.get(PRICE_FIELD),
            category=document.get(CATEGORY_FIELD),
            author=document.get(AUTHOR_FIELD),
        )


class PageRequest(BaseModel):
    """Page number, page size and the optional structured search terms."""
    page_number: int = Field(0, alias="pageNumber", description="Page number, 1-based")
    page_size: int = Field(DEFAULT_PAGE_SIZE, gt=0, alias="pageSize", description="Items per page")
    keyword: Optional[str] = Field(None, description="Case-insensitive substring of the book name")
    category: Optional[str] = Field(None, description="Exact book category")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator('keyword', 'category')
    @classmethod
    def strip_search_terms(cls, v):
        """Surrounding whitespace is ignored; a blank term means no constraint."""
        if v is None:
            return None
        v = v.strip()
        return v or None

    @property
    def skip(self) -> int:
        return compute_skip(self.page_number, self.page_size)

    @property
    def limit(self) -> int:
        return self.page_size


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
    status_code: int = Field(..., description="HTTP status code")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Database connection status")
