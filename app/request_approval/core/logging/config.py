import logging
import logging.config
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from request_approval.core.config import settings

_FORMATTERS = "request_approval.core.logging.formatters"
_FILTERS = "request_approval.core.logging.filters"


def get_logging_config() -> Dict[str, Any]:
    """
    Get the logging configuration dictionary based on the current environment.

    Local runs get console JSON with DEBUG for the application package;
    staging and production get full JSON on stdout plus errors on stderr.

    Returns:
        Dictionary containing the complete logging configuration
    """
    is_local = settings.ENVIRONMENT == "local"

    config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "context_filter": {"()": f"{_FILTERS}.CombinedContextFilter"},
            "noise_reduction": {
                "()": f"{_FILTERS}.NoiseReductionFilter",
                "suppress_patterns": ["/health"],
            },
            "request_id": {"()": f"{_FILTERS}.RequestIdFilter"},
        },
        "root": {"level": "WARNING", "handlers": []},
    }

    if is_local:
        config["formatters"] = {
            "console": {
                "()": f"{_FORMATTERS}.ConsoleFormatter",
                "format": "%(asctime)s %(name)s %(levelname)s %(request_id)s %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        }
        config["handlers"] = {
            "console": {
                "class": "logging.StreamHandler",
                "level": "DEBUG",
                "formatter": "console",
                "filters": ["context_filter", "request_id"],
                "stream": "ext://sys.stdout",
            },
        }
        config["root"]["handlers"] = ["console"]
    else:
        config["formatters"] = {
            "production": {"()": f"{_FORMATTERS}.ProductionFormatter"},
        }
        config["handlers"] = {
            "json_stdout": {
                "class": "logging.StreamHandler",
                "level": "INFO",
                "formatter": "production",
                "filters": ["context_filter", "noise_reduction"],
                "stream": "ext://sys.stdout",
            },
            "error_stderr": {
                "class": "logging.StreamHandler",
                "level": "ERROR",
                "formatter": "production",
                "filters": ["context_filter"],
                "stream": "ext://sys.stderr",
            },
        }
        config["root"]["handlers"] = ["json_stdout", "error_stderr"]

    config["loggers"] = {
        "request_approval": {
            "level": "DEBUG" if is_local else "INFO",
            "handlers": config["root"]["handlers"],
            "propagate": False,
        },
        "fastapi": {"level": "INFO", "propagate": True},
        "uvicorn": {"level": "INFO", "propagate": True},
        "uvicorn.access": {"level": "WARNING", "propagate": False},
        "httpx": {"level": "WARNING", "propagate": True},
        "httpcore": {"level": "WARNING", "propagate": True},
    }

    return config


def load_config_from_yaml(config_path: Path) -> Optional[Dict[str, Any]]:
    """
    Load logging configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file

    Returns:
        Dictionary containing the logging configuration, or None if file doesn't exist
    """
    if not config_path.exists():
        return None

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        print(f"Failed to load logging config from {config_path}: {e}", file=sys.stderr)
        return None


def setup_logging(config_override: Optional[Dict[str, Any]] = None) -> None:
    """
    Set up logging configuration for the application.

    Resolution order:
    1. A provided configuration override
    2. `config/logging.<environment>.yaml`, then `config/logging.yaml`
    3. The default programmatic configuration

    Args:
        config_override: Optional dictionary to override the default configuration
    """
    config = config_override

    if config is None:
        config_dir = Path(settings.BASE_DIR) / "config"
        config = load_config_from_yaml(config_dir / f"logging.{settings.ENVIRONMENT}.yaml")
        if config is None:
            config = load_config_from_yaml(config_dir / "logging.yaml")

    if config is None:
        config = get_logging_config()

    try:
        logging.config.dictConfig(config)
    except (ValueError, TypeError, AttributeError, ImportError) as e:
        print(f"Failed to configure logging: {e}", file=sys.stderr)
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            handlers=[logging.StreamHandler(sys.stdout)],
        )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the specified name (typically __name__).
    """
    return logging.getLogger(name)
