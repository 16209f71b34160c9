from __future__ import annotations

import logging

import uvicorn

from beanconfig.core.config import AdminConfig


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    config = AdminConfig.from_env()
    uvicorn.run("beanconfig.api.main:app", host=config.host, port=config.port)


if __name__ == "__main__":
    main()
