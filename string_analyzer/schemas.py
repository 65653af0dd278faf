from pydantic import BaseModel, Field
from typing import Dict, Optional, List, Any
from datetime import datetime


class StringCreate(BaseModel):
    value: str = Field(..., description="String to analyze")


class StringProperties(BaseModel):
    length: int
    is_palindrome: bool
    unique_characters: int
    word_count: int
    sha256_hash: str
    character_frequency_map: Dict[str, int]


class StringRecord(BaseModel):
    id: str
    value: str
    properties: StringProperties
    created_at: datetime

    class Config:
        from_attributes = True
        frozen = True


class StringListResponse(BaseModel):
    data: List[StringRecord]
    count: int
    filters_applied: Optional[Dict[str, Any]] = None


class InterpretedQuery(BaseModel):
    original: str
    parsed_filters: Dict[str, Any]


class NaturalLanguageResponse(BaseModel):
    data: List[StringRecord]
    count: int
    interpreted_query: InterpretedQuery


class HealthResponse(BaseModel):
    status: str
    storage: str
    total_strings: int
