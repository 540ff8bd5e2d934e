from __future__ import annotations

import uvicorn

from blobdrop.core.clock import format_display, utc_now
from blobdrop.core.config import get_settings
from blobdrop.core.logging import configure_logging


def main() -> None:
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    now = format_display(utc_now(), timezone=settings.DISPLAY_TIMEZONE)
    print(f"blobdrop listening on port {settings.PORT} - {settings.DISPLAY_TIMEZONE}: {now}")
    uvicorn.run(
        "blobdrop.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
