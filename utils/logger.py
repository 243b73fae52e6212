import functools
import logging
import time
from typing import Optional

# Niveau de log
LOG_LEVELS = {"NONE": 0, "BASIC": 1, "DETAILED": 2}
LOG_LEVEL = LOG_LEVELS["BASIC"]  # Peut être changé dynamiquement

_CALLS_LOGGER = logging.getLogger("modules.navmesh.calls")


def log_calls(func):
    """Décorateur pour logger les appels de fonctions et mesurer leur temps d'exécution."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        if LOG_LEVEL == 0 or not _CALLS_LOGGER.isEnabledFor(logging.DEBUG):
            return func(*args, **kwargs)

        _CALLS_LOGGER.debug("Appel %s args=%s kwargs=%s", func.__qualname__, args[1:], kwargs)

        start_time = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = time.perf_counter() - start_time

        if LOG_LEVEL >= 2:
            _CALLS_LOGGER.debug("Retour %s: %r", func.__qualname__, result)
        _CALLS_LOGGER.debug("Temps d'exécution %s: %.6f s", func.__qualname__, elapsed)

        return result

    return wrapper


_NAVMESH_LOGGER_NAME = "modules.navmesh"
_NAVMESH_LOGGER: Optional[logging.Logger] = None


def get_navmesh_logger(level: int = logging.INFO) -> logging.Logger:
    """Return the shared parent logger of every navmesh module, configured once."""

    global _NAVMESH_LOGGER
    if _NAVMESH_LOGGER is not None:
        return _NAVMESH_LOGGER

    logger = logging.getLogger(_NAVMESH_LOGGER_NAME)
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter("[navmesh] %(levelname)s %(name)s: %(message)s"))
        logger.addHandler(handler)

    logger.propagate = True
    _NAVMESH_LOGGER = logger
    return logger
