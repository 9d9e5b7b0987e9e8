"""Interest (waitlist) routes for the course landing page."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.orm import Session

from interest_service.shared.admin.dependencies import verify_admin_key, verify_public_key
from interest_service.shared.database.database import get_db
from interest_service.shared.interest.broadcast import SubmissionBroadcast
from interest_service.shared.interest.exceptions import (
    InterestServiceError,
    RateLimitError,
    UnexpectedError,
)
from interest_service.shared.interest.rate_limit import FixedWindowRateLimiter, get_client_ip
from interest_service.shared.interest.schemas import (
    CountData,
    CountResponse,
    InterestRequest,
    RateLimitInfo,
    SubmissionListResponse,
    SubmissionResponse,
    SubmitResponse,
)
from interest_service.shared.interest.service import (
    count_submissions,
    list_submissions,
    submit_interest,
)

router = APIRouter(prefix="/api/interest", tags=["interest"])

# Per-process throttle; see FixedWindowRateLimiter for its limits
rate_limiter = FixedWindowRateLimiter()

# Observers of accepted submissions (in-process only)
submission_broadcast = SubmissionBroadcast()


def log_accepted_submission(submission) -> None:
    logging.info(f"Interest submission accepted: {getattr(submission, 'id', None)}")


submission_broadcast.subscribe(log_accepted_submission)

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, apikey",
    "Access-Control-Max-Age": "86400",
}


def _raise_http(exc: InterestServiceError, headers: dict = None):
    raise HTTPException(status_code=exc.status_code, detail=exc.to_detail(), headers=headers)


@router.post(
    "/submit",
    response_model=SubmitResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(verify_public_key)],
)
async def submit_interest_form(
    interest_data: InterestRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
):
    """
    Register interest in the course.

    - Max 5 submissions per client IP per hour (per server instance)
    - Name/email validation with per-field errors
    - One submission per email address
    """
    client_ip = get_client_ip(request)
    limit = rate_limiter.hit(client_ip)
    reset_time = limit.reset_datetime.isoformat()
    rate_headers = {
        "X-RateLimit-Limit": str(rate_limiter.max_requests),
        "X-RateLimit-Remaining": str(limit.remaining),
        "X-RateLimit-Reset": reset_time,
    }

    if not limit.allowed:
        retry_after = limit.retry_after_seconds(rate_limiter.clock())
        logging.warning(f"Interest form rate limit exceeded for {client_ip}")
        _raise_http(
            RateLimitError(retry_after, limit.reset_datetime),
            headers={"Retry-After": str(retry_after), **rate_headers},
        )

    try:
        submission = submit_interest(
            db,
            name=interest_data.name,
            email=interest_data.email,
            subscribed=interest_data.subscribed_to_updates,
            broadcast=submission_broadcast,
        )
    except InterestServiceError as e:
        _raise_http(e)
    except Exception as e:
        logging.error(f"Unexpected error submitting interest form: {str(e)}", exc_info=True)
        _raise_http(UnexpectedError())

    response.headers.update(rate_headers)
    return SubmitResponse(
        data=SubmissionResponse.model_validate(submission),
        rateLimit=RateLimitInfo(remaining=limit.remaining, resetTime=reset_time),
    )


@router.options("/submit")
async def submit_preflight():
    """CORS preflight for clients calling the submit route directly."""
    return Response(status_code=status.HTTP_200_OK, headers=PREFLIGHT_HEADERS)


@router.get("/count", response_model=CountResponse, dependencies=[Depends(verify_public_key)])
async def get_submission_count(db: Session = Depends(get_db)):
    """Total number of interest submissions. Store failures surface as 500, never as 0."""
    try:
        count = count_submissions(db)
    except InterestServiceError as e:
        detail = e.to_detail()
        detail["error"] = e.message
        detail["message"] = "Failed to get submission count"
        raise HTTPException(status_code=e.status_code, detail=detail)

    return CountResponse(data=CountData(count=count))


@router.get(
    "/submissions",
    response_model=SubmissionListResponse,
    dependencies=[Depends(verify_admin_key)],
)
async def get_submissions(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    """Admin listing of submissions, newest first. Requires X-Admin-Key."""
    try:
        submissions = list_submissions(db, limit=limit, offset=offset)
        total = count_submissions(db)
    except InterestServiceError as e:
        _raise_http(e)

    return SubmissionListResponse(
        data=[SubmissionResponse.model_validate(s) for s in submissions],
        total=total,
        limit=limit,
        offset=offset,
    )
