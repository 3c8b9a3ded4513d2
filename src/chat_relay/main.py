from __future__ import annotations
import logging
import uvicorn
from chat_relay.infrastructure.config import load_settings

def main() -> None:
    """Start the uvicorn ASGI server."""
    settings = load_settings(require_push_endpoint=False)
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )
    uvicorn.run(
        "chat_relay.interface.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
