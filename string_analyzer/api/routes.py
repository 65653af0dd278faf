from fastapi import APIRouter, Depends, Query, Request, Response, status
from typing import Optional
import logging

from string_analyzer import schemas
from string_analyzer.errors import BadRequestError, ConflictError, NotFoundError, UnprocessableError
from string_analyzer.filters import apply_filters, matches, parse_query_filters
from string_analyzer.nl_parser import interpret_query
from string_analyzer.storage import DuplicateRecordError, RecordStore
from string_analyzer.utils import build_record, compute_sha256, is_valid_unicode

router = APIRouter()
logger = logging.getLogger(__name__)


def get_store(request: Request) -> RecordStore:
    """Dependency to provide the store the app was started with."""
    return request.app.state.store


@router.post("/strings", response_model=schemas.StringRecord, status_code=status.HTTP_201_CREATED)
def create_string(string_data: schemas.StringCreate, store: RecordStore = Depends(get_store)):
    """
    Analyze and store a string.
    Returns 409 if string already exists.
    """
    if not is_valid_unicode(string_data.value):
        raise UnprocessableError('"value" must be valid Unicode text')

    record = build_record(string_data.value)
    try:
        store.insert(record)
    except DuplicateRecordError:
        logger.info(f"Rejected duplicate string {record.id}")
        raise ConflictError("String already exists in the system")

    logger.info(f"Stored string {record.id}")
    return record


@router.get("/strings/filter-by-natural-language", response_model=schemas.NaturalLanguageResponse)
def filter_by_natural_language(
    query: Optional[str] = Query(None, description="Natural language query"),
    store: RecordStore = Depends(get_store),
):
    """
    Filter strings using natural language queries.
    Example: "all single word palindromic strings"
    """
    if query is None or not query.strip():
        raise BadRequestError('Missing "query" parameter')

    filters, matched_rules = interpret_query(query)
    logger.info(f"Interpreted {query!r} as {filters.applied()} via {matched_rules}")

    data = store.find(lambda record: matches(record, filters))
    return schemas.NaturalLanguageResponse(
        data=data,
        count=len(data),
        interpreted_query=schemas.InterpretedQuery(
            original=query,
            parsed_filters=filters.applied(),
        ),
    )


@router.get("/strings", response_model=schemas.StringListResponse)
def get_all_strings(
    is_palindrome: Optional[str] = Query(None),
    min_length: Optional[str] = Query(None),
    max_length: Optional[str] = Query(None),
    word_count: Optional[str] = Query(None),
    contains_character: Optional[str] = Query(None),
    store: RecordStore = Depends(get_store),
):
    """
    Get all strings with optional filtering.
    """
    filters = parse_query_filters(
        is_palindrome=is_palindrome,
        min_length=min_length,
        max_length=max_length,
        word_count=word_count,
        contains_character=contains_character,
    )

    data = apply_filters(store.find(), filters)
    return schemas.StringListResponse(
        data=data,
        count=len(data),
        filters_applied=filters.applied() or None,
    )


@router.get("/strings/{string_value:path}", response_model=schemas.StringRecord)
def get_string(string_value: str, store: RecordStore = Depends(get_store)):
    """
    Get analysis for a specific string.
    Returns 404 if string doesn't exist.
    """
    record = store.find_by_id(compute_sha256(string_value))
    if not record:
        raise NotFoundError("String does not exist in the system")
    return record


@router.delete("/strings/{string_value:path}", status_code=status.HTTP_204_NO_CONTENT)
def delete_string(string_value: str, store: RecordStore = Depends(get_store)):
    """
    Delete a string from the system.
    Returns 404 if string doesn't exist.
    """
    record_id = compute_sha256(string_value)
    if not store.delete_by_id(record_id):
        raise NotFoundError("String does not exist in the system")

    logger.info(f"Deleted string {record_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/health", response_model=schemas.HealthResponse)
def health_check(store: RecordStore = Depends(get_store)):
    """Health check endpoint"""
    return schemas.HealthResponse(status="healthy", storage=store.name, total_strings=store.count())
