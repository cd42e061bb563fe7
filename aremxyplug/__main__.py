"""
Entry point for running the aremxyplug API server: ``python -m aremxyplug``.
"""

import uvicorn

from aremxyplug.settings import Settings


def main():
    """Run the API server with host, port and reload taken from the environment."""
    settings = Settings()
    uvicorn.run(
        "aremxyplug.main:app",
        host=settings.get_app_host(),
        port=settings.get_app_port(),
        reload=settings.get_app_reload(),
        log_level=settings.get_log_level().lower(),
    )


if __name__ == "__main__":
    main()
