"""Server entry point used by the desktop shell (``lexica-server``)."""

import uvicorn

from lexica.core.config import Settings


def main(settings: Settings | None = None) -> None:
    settings = settings or Settings()  # type: ignore[call-arg]
    uvicorn.run(
        "lexica.app:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
