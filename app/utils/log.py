from __future__ import annotations

import logging

ROOT_LOGGER = "crypto_wallet"

_FORMAT = "%(asctime)s %(levelname)s %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """
    Attach one console handler to the crypto_wallet logger tree.
    Safe to call more than once (uvicorn --reload, tests).
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level.upper())

    if not any(getattr(h, "_crypto_wallet", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._crypto_wallet = True  # type: ignore[attr-defined]
        logger.addHandler(handler)

    return logger
