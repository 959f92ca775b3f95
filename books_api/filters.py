"""
Filter construction and pagination for book searches.

A search is described by a FilterExpression: an ordered mapping of field
name to a constraint, combined with logical AND. Expressions come from one
of four input forms (see FilterMode):

- structured: a keyword matched against the book name and an exact category
- equal / like: the delimited ``key:value,key:value`` string format
- document: a JSON object whose fields are matched exactly, as text

The same expression renders to a MongoDB filter document or is evaluated
against in-memory documents.
"""

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from books_api.errors import InvalidFilterSyntax

DEFAULT_PAGE_SIZE = 100

# Field names of stored book documents.
NAME_FIELD = "Name"
PRICE_FIELD = "Price"
CATEGORY_FIELD = "Category"
AUTHOR_FIELD = "Author"

# Stripped from both ends of a delimited filter string and of every key and value.
DELIMITED_TRIM_CHARS = '"{}\\ '


def compute_skip(page_number: int, page_size: int) -> int:
    """
    Number of documents to skip for a 1-based page.

    Page numbers below 1 all map to the first page.
    """
    return max(0, page_size * (page_number - 1))


class FilterMode(str, Enum):
    """Input form a filter expression is built from."""
    STRUCTURED = "structured"
    EQUAL = "equal"
    LIKE = "like"
    DOCUMENT = "document"


@dataclass(frozen=True)
class Equals:
    """Field equals the value exactly."""
    value: Any

    def to_query(self) -> Any:
        return self.value

    def matches(self, candidate: Any) -> bool:
        return candidate == self.value


@dataclass(frozen=True)
class Contains:
    """Field contains the pattern, ignoring case."""
    pattern: str

    def to_query(self) -> Dict[str, str]:
        # Matched literally: regex metacharacters in user input are escaped.
        return {"$regex": re.escape(self.pattern), "$options": "i"}

    def matches(self, candidate: Any) -> bool:
        if not isinstance(candidate, str):
            return False
        return self.pattern.lower() in candidate.lower()


Constraint = Union[Equals, Contains]


class FilterExpression:
    """Field constraints combined with logical AND."""

    def __init__(self, constraints: Optional[Mapping[str, Constraint]] = None):
        self._constraints: Dict[str, Constraint] = dict(constraints or {})

    def equals(self, field: str, value: Any) -> "FilterExpression":
        """Require an exact match on `field`."""
        self._constraints[field] = Equals(value)
        return self

    def contains(self, field: str, pattern: str) -> "FilterExpression":
        """Require `field` to contain `pattern`, ignoring case."""
        self._constraints[field] = Contains(pattern)
        return self

    def merge(self, other: "FilterExpression") -> "FilterExpression":
        """
        New expression holding the constraints of both.

        A field constrained by both keeps the constraint from `other`.
        """
        merged = dict(self._constraints)
        merged.update(other._constraints)
        return FilterExpression(merged)

    @property
    def constraints(self) -> Dict[str, Constraint]:
        return dict(self._constraints)

    def to_query(self) -> Dict[str, Any]:
        """MongoDB filter document; empty when there are no constraints."""
        return {field: constraint.to_query() for field, constraint in self._constraints.items()}

    def matches(self, document: Mapping[str, Any]) -> bool:
        """Evaluate the expression against an in-memory document."""
        return all(
            constraint.matches(document.get(field))
            for field, constraint in self._constraints.items()
        )

    def __len__(self) -> int:
        return len(self._constraints)

    def __iter__(self) -> Iterator[str]:
        return iter(self._constraints)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FilterExpression):
            return NotImplemented
        return self._constraints == other._constraints

    def __repr__(self) -> str:
        return f"FilterExpression({self._constraints!r})"


def build_structured_filter(
    keyword: Optional[str] = None,
    category: Optional[str] = None
) -> FilterExpression:
    """
    Build a filter from search terms.

    Args:
        keyword: Matched against the book name as a case-insensitive substring
        category: Matched against the book category exactly

    Blank or missing terms add no constraint.
    """
    expression = FilterExpression()
    keyword = keyword.strip() if keyword else None
    category = category.strip() if category else None

    if keyword:
        expression.contains(NAME_FIELD, keyword)
    if category:
        expression.equals(CATEGORY_FIELD, category)
    return expression


def split_delimited_pairs(text: str) -> List[Tuple[str, str]]:
    """
    Split a ``key:value,key:value`` string into its pairs.

    Quotes, braces, backslashes and spaces around the whole string and around
    every key and value are ignored, so ``{"Category":"Fiction"}`` parses too.
    The format has no escaping: every comma separates pairs and every colon
    separates a key from its value.

    Raises:
        InvalidFilterSyntax: a pair lacks a key or value, or its value
            contains a colon
    """
    pairs = []
    for token in text.strip(DELIMITED_TRIM_CHARS).split(","):
        if not token:
            continue
        pieces = [piece for piece in token.split(":") if piece]
        if len(pieces) != 2:
            raise InvalidFilterSyntax(f"Expected 'key:value' but got '{token}'")

        key = pieces[0].strip(DELIMITED_TRIM_CHARS)
        value = pieces[1].strip(DELIMITED_TRIM_CHARS)
        if not key:
            raise InvalidFilterSyntax(f"Missing field name in '{token}'")
        if not value:
            raise InvalidFilterSyntax(f"Missing value in '{token}'")
        pairs.append((key, value))
    return pairs


def parse_delimited_filter(text: str, mode: FilterMode = FilterMode.EQUAL) -> FilterExpression:
    """
    Build a filter from a delimited string.

    Args:
        text: Pairs in ``key:value,key:value`` form
        mode: EQUAL for exact matches, LIKE for case-insensitive substrings
    """
    if mode not in (FilterMode.EQUAL, FilterMode.LIKE):
        raise ValueError(f"Delimited filters support equal and like modes, not {mode.value}")

    expression = FilterExpression()
    for key, value in split_delimited_pairs(text):
        if mode == FilterMode.LIKE:
            expression.contains(key, value)
        else:
            expression.equals(key, value)
    return expression


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def build_document_filter(text: str) -> FilterExpression:
    """
    Build a filter from a JSON object.

    Every field becomes an exact match on the textual form of its value,
    so ``{"price": 10}`` matches the string "10" rather than the number.
    """
    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidFilterSyntax(f"Filter is not valid JSON: {e.msg}") from e

    if not isinstance(document, dict):
        raise InvalidFilterSyntax("Filter JSON must be an object")

    expression = FilterExpression()
    for key, value in document.items():
        expression.equals(key, _as_text(value))
    return expression


def build_filter(
    mode: FilterMode,
    text: Optional[str] = None,
    keyword: Optional[str] = None,
    category: Optional[str] = None
) -> FilterExpression:
    """
    Build a filter expression from any supported input form.

    STRUCTURED reads `keyword` and `category`; the other modes read `text`.
    A missing `text` yields an empty expression.
    """
    if mode == FilterMode.STRUCTURED:
        return build_structured_filter(keyword, category)
    if text is None:
        return FilterExpression()
    if mode == FilterMode.DOCUMENT:
        return build_document_filter(text)
    return parse_delimited_filter(text, mode)


def create_json_params(category: Optional[str], author: Optional[str]) -> str:
    """Compact JSON object holding a category and an author, for use as a filter string."""
    return json.dumps({CATEGORY_FIELD: category, AUTHOR_FIELD: author}, separators=(",", ":"), ensure_ascii=False)
