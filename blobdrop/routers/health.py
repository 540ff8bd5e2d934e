from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from blobdrop.core.clock import format_display
from blobdrop.core.config import get_settings
from blobdrop.core.deps import get_blob_service
from blobdrop.core.errors import StoreUnavailable
from blobdrop.schemas.health import LivenessOut
from blobdrop.services.blobs import BlobService

router = APIRouter(tags=["health"])


@router.get("/", response_model=LivenessOut)
def liveness(service: BlobService = Depends(get_blob_service)) -> LivenessOut:
    # StoreUnavailable propagates to the app-level handler as a 503.
    service.ping()
    settings = get_settings()
    return LivenessOut(
        status="API Online",
        hora=format_display(service.now(), timezone=settings.DISPLAY_TIMEZONE),
    )


@router.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
def readyz(service: BlobService = Depends(get_blob_service)) -> dict[str, str]:
    try:
        service.ping()
    except StoreUnavailable as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="store not ready",
        ) from e
    return {"status": "ready"}
