import json
import os
import stat
from typing import Any, Dict, Optional

CONFIG_DIR_ENV = "POCKET_CONFIG_DIR"
DEFAULT_CONFIG_DIR = os.path.join("~", ".config", "pocket")
CONFIG_FILE_NAME = "config.json"

# Default configuration values
DEFAULT_CONFIG = {
    # Credential files, relative to config_dir
    "consumer_key_file": "consumer_key",
    "auth_file": "auth.json",

    # Authorization callback listener
    "callback_host": "127.0.0.1",
    "callback_port": 0,
    # 0 waits until the browser comes back or Ctrl-C.
    "callback_timeout": 0,
    "open_browser": False,

    # Pocket API
    "request_timeout": 30,

    # Item listing
    "list_count": 10,
    "item_template": "[{item_id:>9}] {title} <{url}>",

    "log_level": "INFO",
}

# Validation rules for config fields
CONFIG_SCHEMA = {
    "config_dir": {"type": str, "required": True},
    "consumer_key_file": {"type": str, "required": True},
    "auth_file": {"type": str, "required": True},

    "callback_host": {"type": str, "required": True},
    "callback_port": {"type": int, "required": False, "min": 0, "max": 65535},
    "callback_timeout": {"type": (int, float), "required": False, "min": 0, "max": 3600},
    "open_browser": {"type": bool, "required": False},

    "request_timeout": {"type": (int, float), "required": False, "min": 1, "max": 300},

    "list_count": {"type": int, "required": False, "min": 1, "max": 5000},
    "item_template": {"type": str, "required": False},

    "log_level": {"type": str, "required": False, "choices": ["DEBUG", "INFO", "WARNING", "ERROR"]},
}


def resolve_config_dir(config_dir: Optional[str] = None) -> str:
    """Pick the config directory: explicit argument, then $POCKET_CONFIG_DIR, then ~/.config/pocket."""
    chosen = config_dir or os.environ.get(CONFIG_DIR_ENV) or DEFAULT_CONFIG_DIR
    return os.path.expanduser(chosen)


def load_config(config_dir: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from <config_dir>/config.json, applying defaults for missing fields.

    The file is optional. ``config_dir`` is always set on the returned dict.
    """
    config_dir = resolve_config_dir(config_dir)
    config_path = os.path.join(config_dir, CONFIG_FILE_NAME)

    config: Dict[str, Any] = {}
    if os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            config = json.load(f)
        if not isinstance(config, dict):
            raise ValueError(f"Config file {config_path} must contain a JSON object.")

    # Apply defaults for missing fields
    for key, value in DEFAULT_CONFIG.items():
        if key not in config:
            config[key] = value

    config["config_dir"] = config_dir
    return config


def ensure_config_dir(config: Dict[str, Any]) -> str:
    """Create the config directory (owner-only) if it does not exist yet."""
    config_dir = os.path.expanduser(str(config["config_dir"]))
    os.makedirs(config_dir, mode=stat.S_IRWXU, exist_ok=True)
    return config_dir


def validate_config(config: Dict[str, Any]) -> tuple[bool, list[str]]:
    """
    Validate configuration against schema.
    Returns (is_valid, list_of_errors).
    """
    errors = []

    for key, rules in CONFIG_SCHEMA.items():
        if rules.get("required", False) and key not in config:
            errors.append(f"Missing required field: {key}")
            continue

        if key not in config:
            continue

        value = config[key]

        # bool is an int subclass; don't let True pass as a port number.
        expected_type = rules.get("type")
        if expected_type and (not isinstance(value, expected_type) or (isinstance(value, bool) and expected_type is not bool)):
            type_names = expected_type.__name__ if not isinstance(expected_type, tuple) else "/".join(t.__name__ for t in expected_type)
            errors.append(f"Field '{key}' must be {type_names}, got {type(value).__name__}")
            continue

        if "choices" in rules and value not in rules["choices"]:
            errors.append(f"Field '{key}' must be one of {rules['choices']}, got '{value}'")

        if isinstance(value, (int, float)) and not isinstance(value, bool):
            if "min" in rules and value < rules["min"]:
                errors.append(f"Field '{key}' must be >= {rules['min']}, got {value}")
            if "max" in rules and value > rules["max"]:
                errors.append(f"Field '{key}' must be <= {rules['max']}, got {value}")

    return len(errors) == 0, errors
