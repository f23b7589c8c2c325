import os

import uvicorn

from intake_backend.config import get_settings
from intake_backend.logging_config import configure_logging


def main() -> None:
    """
    Uvicorn launcher.
    - Reads PORT from env; defaults to 3000 for local dev.
    - Logging configured before Uvicorn starts.
    - Builds the app through the create_app factory.
    """

    # Must run before uvicorn.run() so workers inherit logging.
    configure_logging(get_settings().log_level)

    port = int(os.environ.get("PORT", 3000))

    uvicorn.run(
        "intake_backend.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=port,
        reload=False,
        log_config=None,      # keep the dictConfig applied above
        use_colors=False,
    )


if __name__ == "__main__":
    main()
