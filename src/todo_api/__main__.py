from __future__ import annotations

import uvicorn

from .main import create_app, setup_logging
from .settings import get_settings


def main() -> None:
    """Run the API with uvicorn on the configured host and port."""
    settings = get_settings()
    setup_logging(settings.log_level)
    uvicorn.run(
        create_app(settings=settings),
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
