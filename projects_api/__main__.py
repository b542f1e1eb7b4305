"""Run the API with uvicorn: ``python -m projects_api``."""

from __future__ import annotations

import sys

import uvicorn
from pydantic import ValidationError


def main() -> int:
    try:
        from projects_api.core.config import settings
    except ValidationError as exc:
        print(f"Invalid configuration:\n{exc}", file=sys.stderr)
        return 1

    uvicorn.run(
        "projects_api.main:app",
        host=settings.app.host,
        port=settings.app.port,
        reload=settings.app.debug,
        log_config=None,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
