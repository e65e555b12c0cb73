"""Entry: start the callback API server, which runs the Discord bot in its lifespan."""
import logging

import uvicorn

from tracktrivia.config import API_HOST, API_PORT


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    uvicorn.run(
        "tracktrivia.api.app:app",
        host=API_HOST,
        port=API_PORT,
    )


if __name__ == "__main__":
    main()
