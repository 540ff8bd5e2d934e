from __future__ import annotations

from pydantic import BaseModel


class LivenessOut(BaseModel):
    status: str
    hora: str
