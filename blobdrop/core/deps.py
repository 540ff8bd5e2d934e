from __future__ import annotations

from fastapi import Request

from blobdrop.services.blobs import BlobService


def get_blob_service(request: Request) -> BlobService:
    # Built once per app in create_app(store=..., clock=...).
    return request.app.state.blob_service
