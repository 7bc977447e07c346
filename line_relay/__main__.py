"""Run the relay server: python -m line_relay."""

from __future__ import annotations

import logging

import uvicorn

from line_relay.config import RelayConfig
from line_relay.server.app import create_app

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def main() -> None:
    config = RelayConfig.from_env()
    logging.basicConfig(level=config.log_level, format=LOG_FORMAT)
    logging.getLogger(__name__).info("Server running on port %d", config.port)
    uvicorn.run(create_app(config), host="0.0.0.0", port=config.port)  # noqa: S104


if __name__ == "__main__":
    main()
