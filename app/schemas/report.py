from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


class DailySummary2Row(BaseModel):
    total_rides: int = 0
    completed_rides: int = 0
    cancelled_rides: int = 0
    completion_rate: float = 0.0
    cancellation_rate: float = 0.0


class DashboardResponse(BaseModel):
    period: str
    generated_at: str
    reports: Dict[str, List[Dict[str, Any]]]
    errors: Dict[str, str] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None


class DatabaseCheckResponse(BaseModel):
    success: bool
    message: str
    data: List[Dict[str, Any]] = Field(default_factory=list)


class TableCheckResponse(BaseModel):
    exists: bool
    message: str
