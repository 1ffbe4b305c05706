"""Bewertungen API Router"""

from fastapi import APIRouter, Request, Response

from .schemas import ReviewCreate, ReviewList, ReviewSubmissionResult

router = APIRouter()


@router.post("/bewertungen", response_model=ReviewSubmissionResult, status_code=201)
async def submit_review(request: Request, review: ReviewCreate, response: Response):
    result = await request.app.state.services.reviews.submit_review(review)
    if not result.success:
        response.status_code = 503
    return result


@router.get("/bewertungen", response_model=ReviewList)
async def latest_reviews(request: Request):
    """Die 12 neuesten Bewertungen"""
    return await request.app.state.services.reviews.latest_reviews()
