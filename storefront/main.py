# storefront/main.py

# Runs the API with uvicorn: python -m storefront.main

import uvicorn
from dotenv import load_dotenv

# --- Load environment variables from .env file ---
load_dotenv()

from .config.settings import settings # noqa: E402


def main() -> None:
    uvicorn.run(
        "storefront.api.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=not settings.is_production,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
