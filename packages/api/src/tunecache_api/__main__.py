"""Run the audio cache gateway: python -m tunecache_api (or tunecache-api)."""

import sys

import uvicorn
from pydantic import ValidationError

from tunecache_api.settings import Settings, get_settings

APP_IMPORT_PATH = "tunecache_api.api.app:app"


def describe_errors(error: ValidationError) -> list[str]:
    """Render settings errors as ``ENV_NAME: message`` lines."""
    lines = []
    for item in error.errors():
        name = "_".join(str(part) for part in item["loc"]).upper() or "SETTINGS"
        lines.append(f"{name}: {item['msg']}")
    return lines


def load_settings() -> Settings:
    """Load settings, exiting with status 1 on invalid configuration."""
    try:
        return get_settings()
    except ValidationError as e:
        print("Configuration error:", file=sys.stderr)
        for line in describe_errors(e):
            print(f"  {line}", file=sys.stderr)
        sys.exit(1)


def main() -> None:
    """Serve the gateway with uvicorn."""
    settings = load_settings()
    uvicorn.run(
        APP_IMPORT_PATH,
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
    )


if __name__ == "__main__":
    main()
