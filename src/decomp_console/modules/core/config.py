"""
Console configuration.

Provides:
- ConsoleConfig dataclass for holding config
- load_console_config() to parse .decomp/console.json with env overrides
- discover_install_root() to locate the installation root from argv[0]
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)

DEFAULT_PROMPT = "[decomp]> "
DEFAULT_INIT_PROMPT = "init> "
DEFAULT_HISTORY_SIZE = 100

# Fallback when the installation root cannot be discovered
INSTALL_ROOT_ENV = "SLEIGHHOME"
PROMPT_ENV = "DECOMP_CONSOLE_PROMPT"
EXPERIMENTAL_RULES_ENV = "DECOMP_EXPERIMENTAL_RULES"

# File marking the top of an installation tree
ROOT_MARKER = "application.properties"


@dataclass
class ConsoleConfig:
    """Settings for one console process."""

    prompt: str = DEFAULT_PROMPT
    init_prompt: str = DEFAULT_INIT_PROMPT
    experimental_rules: Optional[str] = None
    search_paths: List[str] = field(default_factory=list)
    history_size: int = DEFAULT_HISTORY_SIZE


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


def _is_positive_int(value: Any) -> bool:
    # bool is an int subclass
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


# JSON key -> (ConsoleConfig attribute, validator)
_CONFIG_FIELDS: Dict[str, Tuple[str, Callable[[Any], bool]]] = {
    "prompt": ("prompt", lambda v: isinstance(v, str)),
    "initPrompt": ("init_prompt", lambda v: isinstance(v, str)),
    "experimentalRules": ("experimental_rules", lambda v: isinstance(v, str)),
    "searchPaths": ("search_paths", _is_str_list),
    "historySize": ("history_size", _is_positive_int),
}


def load_console_config(root: Union[str, Path, None] = None) -> ConsoleConfig:
    """
    Load console configuration from .decomp/console.json.

    Args:
        root: Directory holding the .decomp folder (cwd if not given)

    Returns:
        ConsoleConfig with environment overrides applied.
        Missing or invalid files yield defaults.
    """
    base = Path(root) if root is not None else Path.cwd()
    config_file = base / ".decomp" / "console.json"

    data: dict = {}
    if config_file.exists():
        try:
            with open(config_file, "r") as f:
                loaded = json.load(f)
            if isinstance(loaded, dict):
                data = loaded
        except (ValueError, IOError) as exc:
            logger.warning("Ignoring unreadable config %s: %s", config_file, exc)

    config = ConsoleConfig()
    for key, (attr, valid) in _CONFIG_FIELDS.items():
        if key not in data:
            continue
        value = data[key]
        if valid(value):
            setattr(config, attr, list(value) if isinstance(value, list) else value)
        else:
            logger.warning("Ignoring invalid %s in %s: %r", key, config_file, value)

    prompt = os.environ.get(PROMPT_ENV)
    if prompt:
        config.prompt = prompt
    rules = os.environ.get(EXPERIMENTAL_RULES_ENV)
    if rules:
        config.experimental_rules = rules
    return config


def discover_install_root(argv0: str) -> Optional[Path]:
    """Walk up from the program location looking for the root marker."""
    try:
        start = Path(argv0).resolve()
    except OSError:
        return None
    for candidate in [start, *start.parents]:
        if (candidate / ROOT_MARKER).is_file():
            return candidate
    return None


def resolve_install_root(argv0: str, extra_paths: List[str]) -> Optional[str]:
    """
    Find the installation root, falling back to SLEIGHHOME.

    Returns an empty string when nothing was found but extra search paths
    were given (they are enough to locate resources), and None when startup
    cannot proceed.
    """
    root = discover_install_root(argv0)
    if root is not None:
        return str(root)
    env_root = os.environ.get(INSTALL_ROOT_ENV)
    if env_root:
        return env_root
    if extra_paths:
        return ""
    return None
