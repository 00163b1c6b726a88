"""
Logging configuration for the Photo Upload API.
Text output for local development, JSON lines for CloudWatch.
"""
import logging
import logging.config
from typing import Any, Dict

from pythonjsonlogger.json import JsonFormatter

from photoupload.core import config


class CustomJsonFormatter(JsonFormatter):
    """JSON formatter that adds level, logger name and environment."""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]):
        super().add_fields(log_record, record, message_dict)
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['environment'] = config.settings.environment


def build_logging_config(level: str, fmt: str) -> Dict[str, Any]:
    """Build a dictConfig mapping for the given level and format name."""
    return {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'text': {
                'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
            },
            'json': {
                '()': CustomJsonFormatter,
                'format': '%(asctime)s %(levelname)s %(name)s %(message)s'
            },
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'json' if fmt == 'json' else 'text',
                'stream': 'ext://sys.stdout',
            },
        },
        'loggers': {
            'photoupload': {'level': level.upper(), 'handlers': ['console'], 'propagate': False},
            'lambda_functions': {'level': level.upper(), 'handlers': ['console'], 'propagate': False},
            'botocore': {'level': 'WARNING'},
            'boto3': {'level': 'WARNING'},
        },
    }


def setup_logging() -> None:
    """Configure logging from current settings."""
    logging.config.dictConfig(
        build_logging_config(config.settings.log_level, config.settings.log_format)
    )
