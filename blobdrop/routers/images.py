from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request, Response

from blobdrop.core.clock import format_display
from blobdrop.core.config import Settings, get_settings
from blobdrop.core.deps import get_blob_service
from blobdrop.schemas.images import ErrorOut, UploadOut, UploadRequest
from blobdrop.services.blobs import BlobService, SubmitResult

router = APIRouter(tags=["images"])

_error_responses = {
    400: {"model": ErrorOut},
    404: {"model": ErrorOut},
    413: {"model": ErrorOut},
    500: {"model": ErrorOut},
    503: {"model": ErrorOut},
}


def _image_url(request: Request, *, record_id: str, settings: Settings) -> str:
    base = settings.PUBLIC_BASE_URL.strip().rstrip("/")
    if base:
        return f"{base}/image/{record_id}"
    return str(request.url_for("get_image", image_id=record_id))


def _upload_out(request: Request, result: SubmitResult, settings: Settings) -> UploadOut:
    return UploadOut(
        url=_image_url(request, record_id=result.id, settings=settings),
        expira_em=format_display(result.expires_at, timezone=settings.DISPLAY_TIMEZONE),
    )


@router.post("/upload", response_model=UploadOut, responses=_error_responses)
def upload_from_body(
    request: Request,
    payload: UploadRequest | None = None,
    service: BlobService = Depends(get_blob_service),
) -> UploadOut:
    settings = get_settings()
    raw = payload.img if payload is not None else None
    result = service.submit(raw, validate_strictly=settings.STRICT_BODY_VALIDATION)
    return _upload_out(request, result, settings)


@router.get("/api.img", response_model=UploadOut, responses=_error_responses)
def upload_from_query(
    request: Request,
    img: str | None = Query(default=None),
    service: BlobService = Depends(get_blob_service),
) -> UploadOut:
    settings = get_settings()
    result = service.submit(img, validate_strictly=True)
    return _upload_out(request, result, settings)


@router.get(
    "/image/{image_id}",
    name="get_image",
    response_class=Response,
    responses={
        200: {"content": {"image/*": {}}, "description": "The decoded image bytes."},
        **_error_responses,
    },
)
def get_image(image_id: str, service: BlobService = Depends(get_blob_service)) -> Response:
    result = service.retrieve(image_id)
    return Response(
        content=result.data,
        media_type=result.content_type,
        headers={"Cache-Control": f"public, max-age={result.max_age}"},
    )
