"""
Utility functions for media organizer
"""

import yaml
import logging
import os
from typing import Dict, Any, Optional

from .errors import ConfigError
from .models import ConflictAction, OrganizerConfig

DEFAULT_CONFIG_PATH = "config/settings.yaml"

DEFAULT_SETTINGS = {
    "video": {
        "extensions": ['.mkv', '.mp4', '.avi', '.mov', '.wmv', '.m4v', '.mpg', '.mpeg', '.iso']
    },
    "subtitle": {
        "extensions": ['.srt', '.sub', '.idx', '.ass', '.vtt']
    },
    "processing": {
        "conflict_action": "skip",
        "dry_run": False,
        "show_name": None
    }
}

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}

def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from YAML file"""
    explicit = config_path is not None
    config_path = config_path or DEFAULT_CONFIG_PATH

    if not explicit and not os.path.exists(config_path):
        logging.debug(f"No settings file at {config_path}, using built-in defaults")
        config = _merge({}, DEFAULT_SETTINGS)
    else:
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f) or {}
        except OSError as e:
            raise ConfigError(f"Cannot read config file {config_path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"YAML parse error in {config_path}: {e}") from e
        if not isinstance(loaded, dict):
            raise ConfigError(f"Config file must contain a mapping: {config_path}")
        config = _merge(_merge({}, DEFAULT_SETTINGS), loaded)

    # Override with environment variables
    processing = config.setdefault('processing', {})
    if 'JELLYSORT_CONFLICT_ACTION' in os.environ:
        processing['conflict_action'] = os.environ['JELLYSORT_CONFLICT_ACTION']

    if 'JELLYSORT_DRY_RUN' in os.environ:
        processing['dry_run'] = os.environ['JELLYSORT_DRY_RUN']

    if 'JELLYSORT_SHOW_NAME' in os.environ:
        processing['show_name'] = os.environ['JELLYSORT_SHOW_NAME']

    return config

def build_config(config: Dict[str, Any]) -> OrganizerConfig:
    """Turn a settings mapping into the immutable per-run configuration"""
    processing = config.get('processing') or {}

    action = str(processing.get('conflict_action', 'skip')).strip().lower()
    try:
        conflict_action = ConflictAction(action)
    except ValueError:
        choices = ", ".join(a.value for a in ConflictAction)
        raise ConfigError(f"processing.conflict_action must be one of {choices}, got {action!r}")

    show_name = processing.get('show_name')
    if show_name is not None:
        show_name = str(show_name).strip() or None

    return OrganizerConfig(
        video_extensions=_extensions(config, 'video'),
        subtitle_extensions=_extensions(config, 'subtitle'),
        conflict_action=conflict_action,
        dry_run=_as_bool(processing.get('dry_run', False), 'processing.dry_run'),
        show_name=show_name
    )

def setup_logging(verbose: bool = False, log_file: bool = True) -> None:
    """Setup logging configuration

    With ``log_file`` off only the console handler is installed and no
    ``logs/`` directory is created.
    """
    level = logging.DEBUG if verbose else logging.INFO

    # Create formatters
    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    simple_formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s'
    )

    # Root logger configuration
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Clear existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(simple_formatter)
    root_logger.addHandler(console_handler)

    if not log_file:
        return

    # File handler keeps full detail regardless of console verbosity
    os.makedirs('logs', exist_ok=True)
    file_handler = logging.FileHandler('logs/jellysort.log', encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(detailed_formatter)
    root_logger.addHandler(file_handler)

def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        elif isinstance(value, dict):
            base[key] = _merge({}, value)
        else:
            base[key] = list(value) if isinstance(value, list) else value
    return base

def _extensions(config: Dict[str, Any], section: str) -> frozenset:
    raw = (config.get(section) or {}).get('extensions')
    if not isinstance(raw, list) or not raw:
        raise ConfigError(f"{section}.extensions must be a non-empty list")
    exts = set()
    for ext in raw:
        ext = str(ext).strip().lower()
        if not ext:
            continue
        exts.add(ext if ext.startswith('.') else f".{ext}")
    return frozenset(exts)

def _as_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")
