from logging import Logger
import logging.config
from pathlib import Path
import sys

import yaml


def setup_logging(config_path: Path, log_level: str, log_file_path: Path | None = None) -> None:
    """
    Configure logging from a YAML dictConfig file, then apply the configured level
    to the package logger.

    Falls back to basicConfig when the file is missing or invalid.
    """
    try:
        # Load default logging configuration from supplied Path to YAML file
        with open(file=config_path, mode="r") as f:
            config = yaml.safe_load(f)

        # Point file handlers at the configured log file
        if log_file_path is not None:
            for handler in config.get("handlers", {}).values():
                if "filename" in handler:
                    Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)
                    handler["filename"] = str(log_file_path)

        # Apply default config
        logging.config.dictConfig(config)

        # Override default log_level from AppConfig
        override_level_str: str = log_level.upper()

        # Convert string level to integer level. logging module constants are integers.
        level_map: dict[str, int] = {
            "CRITICAL": logging.CRITICAL,
            "ERROR": logging.ERROR,
            "WARNING": logging.WARNING,
            "INFO": logging.INFO,
            "DEBUG": logging.DEBUG,
            "NOTSET": logging.NOTSET,
        }
        override_level: int | None = level_map.get(override_level_str)

        if override_level is None:
            logging.warning(
                f"Invalid log level '{log_level}' from AppConfig. Using default levels from YAML."
            )
            return

        package_logger: Logger = logging.getLogger("bond_tracker")
        if package_logger:  # Check if the logger exists (it should if in YAML)
            package_logger.setLevel(override_level)
            logging.info(
                f"Package logger 'bond_tracker' level overridden to {override_level_str}"
            )  # Log via root/existing logger

    except FileNotFoundError:
        print(f"Error: Logging config file not found at {config_path}", file=sys.stderr)
        # Fallback: Configure a basic console logger so subsequent errors are seen
        logging.basicConfig(level=logging.INFO)
        logging.error(f"Failed to load logging config from {config_path}")
    except Exception as e:
        print(f"An unexpected error occurred during logging setup: {e}", file=sys.stderr)
        # Fallback: Configure a basic console logger so subsequent errors are seen
        logging.basicConfig(level=logging.INFO)
        logging.error(f"An unexpected error occurred during logging setup: {e}")
