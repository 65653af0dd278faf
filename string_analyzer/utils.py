import hashlib
import re
from collections import Counter
from datetime import datetime, timezone
from typing import Dict, Optional

from string_analyzer.schemas import StringProperties, StringRecord

NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]")


def compute_sha256(text: str) -> str:
    """Compute SHA-256 hash of a string. Lone surrogates are hashed as their raw code units."""
    return hashlib.sha256(text.encode("utf-8", errors="surrogatepass")).hexdigest()


def is_valid_unicode(text: str) -> bool:
    """False for strings holding lone surrogates, which cannot be stored or returned as UTF-8"""
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def is_palindrome(text: str) -> bool:
    """
    Check if string is a palindrome, ignoring case and anything outside a-z/0-9.
    Non-ASCII letters are stripped along with punctuation and whitespace.
    """
    cleaned = NON_ALPHANUMERIC.sub("", text.lower())
    return cleaned == cleaned[::-1]


def count_unique_characters(text: str) -> int:
    """Count distinct characters in string"""
    return len(set(text))


def count_words(text: str) -> int:
    """Count words separated by runs of whitespace"""
    return len(text.split())


def get_character_frequency(text: str) -> Dict[str, int]:
    """Get frequency map of each character"""
    return dict(Counter(text))


def analyze_string(value: str) -> StringProperties:
    """Analyze a string and return all computed properties"""
    return StringProperties(
        length=len(value),
        is_palindrome=is_palindrome(value),
        unique_characters=count_unique_characters(value),
        word_count=count_words(value),
        sha256_hash=compute_sha256(value),
        character_frequency_map=get_character_frequency(value),
    )


def build_record(value: str, created_at: Optional[datetime] = None) -> StringRecord:
    """Build a new content-addressed record for a string"""
    properties = analyze_string(value)
    return StringRecord(
        id=properties.sha256_hash,
        value=value,
        properties=properties,
        created_at=created_at or datetime.now(timezone.utc),
    )
