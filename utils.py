"""
Utility functions for the simulation framework.

This module provides helper functions, such as logging setup and config
loading, that are used across different parts of the application but do
not belong to a specific domain like physics or rendering.
"""
import logging
import logging.handlers
import json
import os
from typing import Dict, Any
from constants import (
    DEFAULT_BUBBLE_RADIUS, BURST_SIZE, SPAWN_DELAY_MIN_MS, SPAWN_DELAY_MAX_MS,
    RESTITUTION, BOUNDARY_MARGIN, MAX_PARTICLES, FULLSCREEN, WINDOW_WIDTH,
    WINDOW_HEIGHT, BUBBLE_LINE_WIDTH
)

# --- Data Contracts ---
#
# setup_logging(config: Dict[str, Any]) -> str:
#   - Inputs:
#     - config: A dictionary with an optional "logging" section holding
#       "level", "format" and "log_file".
#   - Outputs: The log file path in use (default logs/bubbles.log).
#   - Side Effects: Replaces the root logger's handlers with a console
#     handler and a rotating file handler. Creates the log directory.
#
# load_config(path: str) -> Dict[str, Any]:
#   - Outputs: The parsed config with CONFIG_DEFAULTS filled into every
#     key the file leaves out.
#   - Side Effects: Logs and re-raises FileNotFoundError and
#     json.JSONDecodeError.
#
# validate_config(config: Dict[str, Any]) -> None:
#   - Inputs: The full configuration dictionary.
#   - Outputs: None
#   - Side Effects: Logs at CRITICAL and raises ValueError on the first
#     invalid value found.

REQUIRED_SECTIONS = ('simulation_parameters', 'run_control', 'visualization')

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
LOG_FILE = 'logs/bubbles.log'
LOG_MAX_BYTES = 1024 * 1024
LOG_BACKUP_COUNT = 5

# Values filled into any section key the config file leaves out.
CONFIG_DEFAULTS = {
    'simulation_parameters': {
        'seed': None,
        'bubble_radius': DEFAULT_BUBBLE_RADIUS,
        'burst_size': BURST_SIZE,
        'spawn_delay_min_ms': SPAWN_DELAY_MIN_MS,
        'spawn_delay_max_ms': SPAWN_DELAY_MAX_MS,
        'restitution': RESTITUTION,
        'boundary_margin': BOUNDARY_MARGIN,
        'max_particles': MAX_PARTICLES,
    },
    'run_control': {
        'max_steps': 0,
        'log_throttle_steps': 600,
        'profile': False,
    },
    'visualization': {
        'fullscreen': FULLSCREEN,
        'window_width': WINDOW_WIDTH,
        'window_height': WINDOW_HEIGHT,
        'line_width': BUBBLE_LINE_WIDTH,
    },
    'logging': {
        'level': 'INFO',
        'format': LOG_FORMAT,
        'log_file': LOG_FILE,
    },
}


def setup_logging(config: Dict[str, Any]) -> str:
    """
    Routes the root logger to the console and a rotating bubble log file.

    Returns the log file path in use.
    """
    log_config = config.get('logging', {})
    log_level = log_config.get('level', 'INFO').upper()
    log_file_path = log_config.get('log_file', LOG_FILE)
    formatter = logging.Formatter(log_config.get('format', LOG_FORMAT))

    log_dir = os.path.dirname(log_file_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(log_level)
    # Re-running setup replaces handlers instead of stacking them.
    for handler in list(root.handlers):
        root.removeHandler(handler)

    console_handler = logging.StreamHandler()
    file_handler = logging.handlers.RotatingFileHandler(
        log_file_path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT
    )
    for handler in (console_handler, file_handler):
        handler.setFormatter(formatter)
        root.addHandler(handler)

    logging.info(f"Bubble log started at level {log_level}, writing to {log_file_path}.")
    return log_file_path


def apply_defaults(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Fills keys missing from the config sections with CONFIG_DEFAULTS.

    A missing 'logging' section is created. A missing required section is
    left missing so validate_config can report it.
    """
    for section, defaults in CONFIG_DEFAULTS.items():
        if section not in config:
            if section in REQUIRED_SECTIONS:
                continue
            config[section] = {}
        for key, value in defaults.items():
            config[section].setdefault(key, value)
    return config


def load_config(path: str) -> Dict[str, Any]:
    """Reads the bubble config JSON at `path` and fills in defaults."""
    logging.info(f"Reading bubble configuration from {path}.")
    try:
        with open(path, 'r') as f:
            config = json.load(f)
    except FileNotFoundError:
        logging.error(f"No configuration file at {path}.")
        raise
    except json.JSONDecodeError as e:
        logging.error(f"Configuration at {path} is not valid JSON: {e}")
        raise
    return apply_defaults(config)


def _fail(msg: str) -> None:
    logging.critical(msg)
    raise ValueError(msg)


def validate_config(config: Dict[str, Any]) -> None:
    """
    Checks the experimental parameters before any component is built.

    Only values that are present are checked; absent optional keys fall
    back to the defaults in constants.py.
    """
    for section in REQUIRED_SECTIONS:
        if section not in config:
            _fail(f"Configuration error: missing section '{section}'.")

    sim_params = config['simulation_parameters']

    radius = sim_params.get('bubble_radius')
    if radius is not None and not radius > 0:
        _fail(f"Configuration error: bubble_radius must be > 0, got {radius}.")

    restitution = sim_params.get('restitution')
    if restitution is not None and not 0.0 <= restitution <= 1.0:
        _fail(f"Configuration error: restitution must be in [0, 1], got {restitution}.")

    for key in ('burst_size', 'max_particles', 'boundary_margin'):
        value = sim_params.get(key)
        if value is not None and value < 0:
            _fail(f"Configuration error: {key} must not be negative, got {value}.")

    delay_min = sim_params.get('spawn_delay_min_ms')
    delay_max = sim_params.get('spawn_delay_max_ms')
    if delay_min is not None and delay_max is not None and delay_min > delay_max:
        _fail(
            f"Configuration error: spawn_delay_min_ms ({delay_min}) is greater "
            f"than spawn_delay_max_ms ({delay_max})."
        )

    max_steps = config['run_control'].get('max_steps')
    if max_steps is not None and max_steps < 0:
        _fail(f"Configuration error: max_steps must not be negative, got {max_steps}.")

    log_throttle = config['run_control'].get('log_throttle_steps')
    if log_throttle is not None and log_throttle <= 0:
        _fail(f"Configuration error: log_throttle_steps must be > 0, got {log_throttle}.")

    logging.info("Configuration validated.")
