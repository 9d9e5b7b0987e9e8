"""Pydantic schemas for the interest API."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class InterestRequest(BaseModel):
    """
    Interest form body. Fields are loosely typed on purpose: content rules
    live in input_validation so every field error is reported together (400),
    not as a framework 422.
    """
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    email: Optional[str] = None
    subscribed_to_updates: bool = Field(False, alias="subscribedToUpdates")


class SubmissionResponse(BaseModel):
    """A stored submission as returned to clients."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    subscribed_to_updates: bool
    created_at: datetime
    updated_at: datetime


class RateLimitInfo(BaseModel):
    remaining: int
    resetTime: str


class SubmitResponse(BaseModel):
    success: bool = True
    data: SubmissionResponse
    message: str = "Interest form submitted successfully!"
    rateLimit: RateLimitInfo


class CountData(BaseModel):
    count: int


class CountResponse(BaseModel):
    success: bool = True
    data: CountData
    message: str = "Submission count retrieved successfully"


class SubmissionListResponse(BaseModel):
    success: bool = True
    data: List[SubmissionResponse]
    total: int
    limit: int
    offset: int
