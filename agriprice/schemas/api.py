from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class PriceSignalOut(BaseModel):
    """Stored signal for one canonical series."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    global_product_id: str
    global_variety_id: Optional[str] = None
    global_country_id: str
    global_market_id: str
    global_price_stage_id: Optional[str] = None
    current_price: float
    current_price_date: datetime
    previous_price: Optional[float] = None
    month_ago_price: Optional[float] = None
    three_month_ago_price: Optional[float] = None
    six_month_ago_price: Optional[float] = None
    year_ago_price: Optional[float] = None
    mom: Optional[float] = None
    three_month_change: Optional[float] = None
    six_month_change: Optional[float] = None
    year_change: Optional[float] = None
    mom_status: str
    three_month_status: str
    six_month_status: str
    year_status: str
    data_source: str


class PriceSignalListResponse(BaseModel):
    request_id: str
    api_latency_ms: int
    data: list[PriceSignalOut]


class SignalSummaryResponse(BaseModel):
    total: int
    changed: int
    stable: int


class SourceProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    source: str
    name: str
    global_product_id: Optional[str] = None
    match_score: Optional[int] = None
    match_type: Optional[str] = None
    is_manual_match: bool


class MatchResultOut(BaseModel):
    source_product_id: str
    source_name: str
    global_product_id: Optional[str] = None
    score: int
    match_type: str


class MatchRunResponse(BaseModel):
    total: int
    matched: int
    unmatched: int
    results: list[MatchResultOut]


class ManualMatchRequest(BaseModel):
    global_product_id: Optional[str] = None


class HealthResponse(BaseModel):
    database: str
    last_run_status: str | None


class RunOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    run_id: str
    job_name: str
    status: str
    records_processed: int
    error_message: str | None = None
    meta: dict | None = None
    started_at: datetime
    ended_at: datetime | None
