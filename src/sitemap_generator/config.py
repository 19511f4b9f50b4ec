import importlib
import json
import logging
import os
from typing import Any, Dict, Optional

from sitemap_generator.errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_FILE_PATH = "sitemap_config.json"
DEFAULT_OUTPUT_PATH = os.path.join("public", "sitemap.xml")


def load_config(path: str = CONFIG_FILE_PATH) -> Optional[Dict[str, Any]]:
    """Loads the configuration from a JSON file."""
    if not os.path.exists(path):
        logger.error(f"Configuration file not found: {path}")
        return None
    try:
        with open(path, 'r', encoding='utf-8') as f:
            config_data = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Error decoding JSON from {path}: {e}")
        return None
    except OSError as e:
        logger.error(f"Could not read configuration {path}: {e}")
        return None
    logger.info(f"Successfully loaded configuration from {path}")
    if not validate_config(config_data):
        return None
    return config_data


def validate_config(config: Dict[str, Any]) -> bool:
    """Validates the structure and content of the configuration."""
    if not isinstance(config, dict):
        logger.error("Configuration must be a dictionary.")
        return False

    for key in ("host", "declaration"):
        if not isinstance(config.get(key), str) or not config[key].strip():
            logger.error(f"'{key}' must be a non-empty string.")
            return False

    if ":" not in config["declaration"]:
        logger.error("'declaration' must look like 'package.module:function'.")
        return False

    routes = config.get("routes", {})
    if not isinstance(routes, dict):
        logger.error("'routes' must be a mapping of route name to path template.")
        return False
    for name, template in routes.items():
        if not isinstance(template, str):
            logger.error(f"Route '{name}' must map to a path template string.")
            return False

    ping = config.get("ping", {})
    if not isinstance(ping, dict):
        logger.error("'ping' must be a dictionary.")
        return False
    seen_names = set()
    for i, endpoint in enumerate(ping.get("endpoints", [])):
        if not isinstance(endpoint, dict) or not endpoint.get("url"):
            logger.error(f"Ping endpoint at index {i} must be a dictionary with a 'url'.")
            return False
        # Unnamed endpoints are reported under their URL
        name = endpoint.get("name") or endpoint["url"]
        if name in seen_names:
            logger.error(f"Ping endpoint at index {i} reuses the name '{name}'. Give each endpoint a unique 'name'.")
            return False
        seen_names.add(name)

    # Numeric settings may arrive as strings; store them as numbers
    for key, cast, minimum in (("timeout", float, 0), ("max_workers", int, 1)):
        if key not in ping:
            continue
        value = ping[key]
        try:
            if isinstance(value, bool):
                raise ValueError(value)
            number = cast(value)
        except (TypeError, ValueError):
            logger.error(f"'ping.{key}' must be a number, got {value!r}.")
            return False
        if number < minimum or (key == "timeout" and number == 0):
            logger.error(f"'ping.{key}' must be positive, got {value!r}.")
            return False
        ping[key] = number

    if not routes:
        # Routes can also be supplied by the caller, so this is not fatal
        logger.warning("'routes' is empty. Every entry will fail to resolve unless routes are added.")

    logger.info("Configuration validation successful.")
    return True


def import_object(dotted: str) -> Any:
    """
    Resolve a "package.module:attribute" string.

    Raises:
        ConfigurationError: The module or attribute cannot be found
    """
    module_name, _, attribute = dotted.partition(":")
    if not module_name or not attribute:
        raise ConfigurationError(f"Expected 'module:attribute', got {dotted!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import module '{module_name}': {e}") from e
    try:
        return getattr(module, attribute)
    except AttributeError as e:
        raise ConfigurationError(f"Module '{module_name}' has no attribute '{attribute}'") from e
