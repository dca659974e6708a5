"""Product matching inputs and outcomes."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MatchType(str, Enum):
    DICTIONARY = "DICTIONARY"
    FUZZY = "FUZZY"
    TOKEN = "TOKEN"
    NONE = "NONE"


class CandidateProduct(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    local_name: str
    local_name_en: Optional[str] = None


class MatchCandidate(BaseModel):
    model_config = ConfigDict(frozen=True)

    source_name: str
    candidate_product_id: Optional[str] = None
    score: int = Field(default=0, ge=0, le=100)
    match_type: MatchType = MatchType.NONE
