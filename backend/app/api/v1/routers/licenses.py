# app/api/v1/routers/licenses.py
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from app.api.v1.deps import get_verifier
from app.schemas.license import VerifyOut
from app.services.license_verifier import LicenseVerifier

router = APIRouter(tags=["licenses"])


@router.get("/verify", response_model=VerifyOut)
async def verify_license(
    key: str | None = Query(default=None, description="License key to check"),
    verifier: LicenseVerifier = Depends(get_verifier),
):
    """
    Check a license key (called by the extension on startup).

    Unknown, revoked and unverifiable keys all return {"valid": false}.
    A missing key returns 400 with the same body.
    """
    if not key or not key.strip():
        return JSONResponse(status_code=400, content={"valid": False})
    result = await verifier.check(key)
    return {"valid": result.valid}
