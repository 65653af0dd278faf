import re
from pydantic import BaseModel
from typing import Dict, Any, Iterable, List, Optional

from string_analyzer.errors import BadRequestError
from string_analyzer.schemas import StringRecord

INTEGER = re.compile(r"-?\d+", re.ASCII)


class FilterSet(BaseModel):
    """Conjunctive set of constraints; fields left as None impose nothing"""

    is_palindrome: Optional[bool] = None
    word_count: Optional[int] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    contains_character: Optional[str] = None

    def is_empty(self) -> bool:
        return not self.applied()

    def applied(self) -> Dict[str, Any]:
        """Only the filters that were actually set"""
        return self.model_dump(exclude_none=True)


def contains_char(value: str, char: str) -> bool:
    """Case-insensitive containment test on the raw value"""
    return char.lower() in value.lower()


def matches(record: StringRecord, filters: FilterSet) -> bool:
    props = record.properties

    if filters.is_palindrome is not None and props.is_palindrome != filters.is_palindrome:
        return False
    if filters.word_count is not None and props.word_count != filters.word_count:
        return False
    if filters.min_length is not None and props.length < filters.min_length:
        return False
    if filters.max_length is not None and props.length > filters.max_length:
        return False
    if filters.contains_character is not None and not contains_char(
        record.value, filters.contains_character
    ):
        return False
    return True


def apply_filters(records: Iterable[StringRecord], filters: FilterSet) -> List[StringRecord]:
    """Return the records matching every present filter, in their original order"""
    return [record for record in records if matches(record, filters)]


# ------------------------------------------------------------------------------
# QUERY PARAMETER VALIDATION
# ------------------------------------------------------------------------------

def _parse_bool(name: str, raw: str) -> bool:
    if raw == "true":
        return True
    if raw == "false":
        return False
    raise BadRequestError(f'{name} must be "true" or "false"')


def _parse_int(name: str, raw: str) -> int:
    if not INTEGER.fullmatch(raw):
        raise BadRequestError(f"{name} must be an integer")
    try:
        return int(raw)
    except ValueError:
        raise BadRequestError(f"{name} must be an integer")


def parse_query_filters(
    is_palindrome: Optional[str] = None,
    min_length: Optional[str] = None,
    max_length: Optional[str] = None,
    word_count: Optional[str] = None,
    contains_character: Optional[str] = None,
) -> FilterSet:
    """
    Validate raw query string values and build a FilterSet.
    Any malformed value raises BadRequestError; nothing is coerced.
    """
    filters = FilterSet()

    if is_palindrome is not None:
        filters.is_palindrome = _parse_bool("is_palindrome", is_palindrome)
    if min_length is not None:
        filters.min_length = _parse_int("min_length", min_length)
    if max_length is not None:
        filters.max_length = _parse_int("max_length", max_length)
    if word_count is not None:
        filters.word_count = _parse_int("word_count", word_count)
    if contains_character is not None:
        if len(contains_character) != 1:
            raise BadRequestError("contains_character must be a single character")
        filters.contains_character = contains_character

    return filters
