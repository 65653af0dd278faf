"""
Heuristic natural language → FilterSet translation.

Each rule inspects the lowercased query on its own and either yields a value
for one filter field or nothing. Rules run in order and their results are
combined; when two rules set the same field the later one wins.

Examples:
- "all single word palindromic strings" -> {word_count: 1, is_palindrome: true}
- "strings longer than 10 characters" -> {min_length: 11}
- "strings containing the letter z" -> {contains_character: "z"}
"""
import re
import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

from string_analyzer.errors import UnparseableQueryError
from string_analyzer.filters import FilterSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Rule:
    name: str
    field: str
    extract: Callable[[str], Optional[Any]]

    def apply(self, text: str) -> Optional[Any]:
        return self.extract(text)


def substring_rule(name: str, field: str, needle: str, value: Any) -> Rule:
    """Rule that sets a fixed value when `needle` occurs in the text"""
    return Rule(name, field, lambda text: value if needle in text else None)


def pattern_rule(name: str, field: str, pattern: str, convert: Callable[[str], Any]) -> Rule:
    """Rule that converts the first capture group of `pattern`"""
    regex = re.compile(pattern)

    def extract(text: str) -> Optional[Any]:
        match = regex.search(text)
        if not match:
            return None
        try:
            return convert(match.group(1))
        except ValueError:
            # e.g. a number too long for int()
            return None

    return Rule(name, field, extract)


RULES: Tuple[Rule, ...] = (
    substring_rule("palindrome", "is_palindrome", "palindrom", True),
    substring_rule("single_word", "word_count", "single word", 1),
    pattern_rule("longer_than", "min_length", r"longer than (\d+)", lambda n: int(n) + 1),
    pattern_rule("shorter_than", "max_length", r"shorter than (\d+)", lambda n: int(n) - 1),
    substring_rule("vowel", "contains_character", "vowel", "a"),
    pattern_rule(
        "contains_letter",
        "contains_character",
        r"\bcontain(?:s|ing)?\s+(?:the\s+)?(?:letter\s+|character\s+)?([a-z])\b",
        lambda letter: letter,
    ),
)


def interpret_query(query: str, rules: Tuple[Rule, ...] = RULES) -> Tuple[FilterSet, List[str]]:
    """
    Run every rule against the query.
    Returns the combined FilterSet and the names of the rules that matched.
    Raises UnparseableQueryError if none did.
    """
    text = query.lower()
    values = {}
    matched = []

    for rule in rules:
        value = rule.apply(text)
        if value is None:
            continue
        values[rule.field] = value
        matched.append(rule.name)

    if not matched:
        raise UnparseableQueryError("Unable to parse natural language query")

    logger.debug(f"Query {query!r} matched rules {matched}")
    return FilterSet(**values), matched


def parse_natural_language_query(query: str) -> FilterSet:
    """Parse natural language query into a FilterSet"""
    filters, _ = interpret_query(query)
    return filters
