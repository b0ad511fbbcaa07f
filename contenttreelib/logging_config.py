"""Central logging configuration for ContentTreeLib.

The library itself only creates module loggers; applications and tools
call :func:`setup_logging` once at start-up to get console output.
"""

import logging
import logging.config
import os
from typing import Any, Dict, List, Optional

__all__ = ["setup_logging", "build_logging_config"]

ENGINE_LOGGER = 'contenttreelib.aio.engine'
DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
_TRUTHY = {'1', 'true', 'yes', 'on'}


def build_logging_config(level: str = 'INFO') -> Dict[str, Any]:
    """Console-only ``dictConfig`` for the library's loggers."""
    return {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'simple': {
                'format': DEFAULT_FORMAT,
            },
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'simple',
                'level': 'DEBUG',
            },
        },
        'loggers': {
            'contenttreelib': {
                'handlers': ['console'],
                'level': level,
                'propagate': False,
            },
        },
    }


def setup_logging(level: Optional[str] = None) -> None:
    """Configure logging for ContentTreeLib.

    Args:
        level: Level for the ``contenttreelib`` logger; defaults to
            ``CONTENTTREE_LOG_LEVEL`` or INFO
    """
    level = (level or os.environ.get('CONTENTTREE_LOG_LEVEL') or 'INFO').upper()
    # getLevelName maps known names to their numeric level
    if not isinstance(logging.getLevelName(level), int):
        level = 'INFO'
    logging.config.dictConfig(build_logging_config(level))
    logging.getLogger('contenttreelib').debug("===== Logging initialised (level=%s) =====", level)

    _apply_debug_overrides()


def _debug_targets() -> List[str]:
    targets = []
    if os.environ.get('CONTENTTREE_DEBUG_ENGINE', '').strip().lower() in _TRUTHY:
        targets.append(ENGINE_LOGGER)
    extra_modules = os.environ.get('CONTENTTREE_DEBUG_MODULES', '').strip()
    if extra_modules:
        targets.extend(m.strip() for m in extra_modules.split(',') if m.strip())
    return targets


def _apply_debug_overrides() -> None:
    """Apply environment-driven module-specific debug overrides.

    Supports:
    - CONTENTTREE_DEBUG_ENGINE=true -> DEBUG for the mutation engine
    - CONTENTTREE_DEBUG_MODULES=comma,separated,logger,names -> DEBUG for listed loggers
    """
    for name in _debug_targets():
        logger = logging.getLogger(name)
        logger.setLevel(logging.DEBUG)
        logger.info("Debug override active for logger '%s'", name)
