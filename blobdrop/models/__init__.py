from __future__ import annotations

from blobdrop.models.record import RECORD_TTL as RECORD_TTL  # noqa: F401
from blobdrop.models.record import RECORD_TTL_SECONDS as RECORD_TTL_SECONDS  # noqa: F401
from blobdrop.models.record import BlobRecord as BlobRecord  # noqa: F401
