"""Run the API with uvicorn: python -m cotizador"""

import logging

import uvicorn

from .config import get_settings


def main():
    settings = get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("cotizador.main:app", host="0.0.0.0", port=settings.PORT)


if __name__ == "__main__":
    main()
