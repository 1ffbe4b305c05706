"""Bewertungen Schemas"""

from typing import List, Optional

from pydantic import BaseModel, Field


class ReviewCreate(BaseModel):
    """Input Schema: Bewertungsformular (Sterne 1-5, Weiterempfehlung 0-10)"""
    geschmack: int = Field(..., ge=1, le=5)
    optik: int = Field(..., ge=1, le=5)
    service: int = Field(..., ge=1, le=5)
    gesamtbewertung: int = Field(..., ge=1, le=5)
    nps: int = Field(..., ge=0, le=10)
    kommentar: str = ""
    order_id: Optional[str] = None
    customer_id: Optional[str] = None
    name: Optional[str] = None


class Review(BaseModel):
    id: str
    geschmack: int
    optik: int
    service: int
    gesamtbewertung: int
    nps: int
    kommentar: str = ""
    name: Optional[str] = None
    order_id: Optional[str] = None
    created: Optional[str] = None


class ReviewSubmissionResult(BaseModel):
    success: bool
    review_id: Optional[str] = None
    notification_sent: bool = False
    error: Optional[str] = None


class ReviewList(BaseModel):
    reviews: List[Review] = []
    average_overall: Optional[float] = None
