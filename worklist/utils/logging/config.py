"""
Logging configuration module.
Centralized logging setup for applications embedding the worklist client.
"""
import logging
import logging.config
from pathlib import Path

from worklist import settings
from .formatters import ColoredFormatter, DetailedFormatter, JSONFormatter, SafeFormatter
from .filters import SensitiveDataFilter

WORKLIST_LOGGERS = (
    'worklist.connection',
    'worklist.auth',
    'worklist.json',
    'worklist.source',
    'worklist.download',
)


def get_log_level():
    """Get log level from settings."""
    level_name = getattr(settings, 'WORKLIST_LOG_LEVEL', 'INFO')
    return getattr(logging, level_name.upper(), logging.INFO)


def get_log_dir() -> Path:
    return Path(getattr(settings, 'WORKLIST_LOG_DIR', settings.BASE_DIR / 'logs'))


def _rotating_file(filename: Path, level, formatter: str) -> dict:
    return {
        'class': 'logging.handlers.TimedRotatingFileHandler',
        'level': level,
        'formatter': formatter,
        'filters': ['sensitive_data'],
        'filename': str(filename),
        'when': 'midnight',
        'interval': 1,
        'backupCount': 10,
        'encoding': 'utf-8',
    }


def get_logging_config():
    """
    Get logging configuration dictionary.

    Returns:
        dict: Logging configuration
    """
    log_level = get_log_level()
    log_dir = get_log_dir()
    debug_mode = getattr(settings, 'DEBUG', False)

    log_dir.mkdir(parents=True, exist_ok=True)

    api_handlers = ['console', 'api_file', 'error_file'] if debug_mode else ['api_file', 'error_file']

    config = {
        'version': 1,
        'disable_existing_loggers': False,

        'formatters': {
            'colored': {
                '()': ColoredFormatter,
                'format': '%(levelname)s [%(name)s] %(message)s'
            },
            'detailed': {
                '()': DetailedFormatter,
                'format': '%(timestamp)s [%(levelname)s] %(threadName)s %(module_path)s:%(lineno)d - %(message)s'
            },
            'json': {
                '()': JSONFormatter,
            },
            'standard': {
                '()': SafeFormatter,
                'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
                'datefmt': '%Y-%m-%d %H:%M:%S'
            },
        },

        'filters': {
            'sensitive_data': {
                '()': SensitiveDataFilter,
            },
        },

        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'level': log_level,
                'formatter': 'colored',
                'filters': ['sensitive_data'],
                'stream': 'ext://sys.stdout',
            },
            'main_file': _rotating_file(log_dir / 'main.log', logging.DEBUG, 'standard'),
            'error_file': _rotating_file(log_dir / 'error.log', logging.ERROR, 'detailed'),
            'api_file': _rotating_file(log_dir / 'api.log', logging.INFO, 'json'),
        },

        'loggers': {
            **{
                name: {
                    'level': log_level,
                    'handlers': api_handlers,
                    'propagate': False,
                }
                for name in WORKLIST_LOGGERS
            },

            'urllib3': {
                'level': logging.WARNING,
                'handlers': ['main_file'],
                'propagate': False,
            },

            'worklist': {
                'level': log_level,
                'handlers': ['console', 'main_file', 'error_file'] if debug_mode else ['main_file', 'error_file'],
                'propagate': False,
            },
        },

        'root': {
            'level': log_level,
            'handlers': ['console', 'main_file'] if debug_mode else ['main_file'],
        },
    }

    return config


def setup_logging():
    """Setup logging for the worklist client."""
    logging.config.dictConfig(get_logging_config())

    logger = logging.getLogger('worklist')
    logger.info("=" * 60)
    logger.info("Logging system initialized")
    logger.info(f"Log level: {logging.getLevelName(get_log_level())}")
    logger.info(f"Log directory: {get_log_dir()}")
    logger.info(f"Console logging: {'Enabled' if getattr(settings, 'DEBUG', False) else 'Disabled (DEBUG=False)'}")
    logger.info("=" * 60)


def get_logger(name):
    """
    Get a logger with the given name.

    Args:
        name: Logger name (usually __name__)

    Returns:
        logging.Logger: Configured logger
    """
    return logging.getLogger(name)
