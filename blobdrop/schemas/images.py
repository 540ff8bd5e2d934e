from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class UploadRequest(BaseModel):
    img: str | None = None


class UploadOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str
    expira_em: str = Field(alias="expiraEm")


class ErrorOut(BaseModel):
    error: str
    code: str
    detail: str | None = None
