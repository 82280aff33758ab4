from fastapi import APIRouter, Depends, HTTPException

from app.dependencies import get_orchestrator
from app.schemas.vendor import VendorMatchRequest, VendorResolution
from app.services.exceptions import InvoiceProcessingError
from app.services.upload_orchestrator import UploadOrchestrator

router = APIRouter(prefix="/api/vendors", tags=["vendors"])


@router.post("/match", response_model=VendorResolution)
async def match_vendor(
    request: VendorMatchRequest,
    orchestrator: UploadOrchestrator = Depends(get_orchestrator)
):
    """Preview vendor resolution for a name. Never creates a vendor"""
    try:
        return await orchestrator.call_with_token_refresh(
            orchestrator.vendor_resolver.resolve, request.vendor_name, False
        )
    except InvoiceProcessingError as e:
        raise HTTPException(status_code=e.status_code or 502, detail=e.message)
