# app/api/v1/routers/summarise.py
import logging

from fastapi import APIRouter, Depends, HTTPException

from app.api.v1.deps import get_gateway
from app.core.errors import ServiceError
from app.schemas.summary import SummariseIn, SummariseOut
from app.services.summariser import SummarisationGateway

router = APIRouter(tags=["summarise"])
logger = logging.getLogger("uvicorn.error")


@router.post("/summarise", response_model=SummariseOut)
async def summarise(
    body: SummariseIn,
    gateway: SummarisationGateway = Depends(get_gateway),
):
    """
    Summarise page text for a licensed extension user.

    Args:
        body: licenseKey, text (required) and title (optional)

    Returns:
        SummariseOut: {"result": {"headline", "bullets", "readTime"}}

    Raises:
        HTTPException (400): MISSING_INPUT
        HTTPException (403): INVALID_LICENSE
        HTTPException (502): RELAY_ERROR / MALFORMED_RESPONSE
        HTTPException (500): INTERNAL_ERROR
    """
    try:
        summary = await gateway.summarise(body.licenseKey, body.title, body.text)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
    except Exception:
        logger.exception("[summarise] Unexpected error")
        raise HTTPException(
            status_code=500,
            detail={"code": "INTERNAL_ERROR", "message": "Internal server error"},
        )
    return {"result": summary}
