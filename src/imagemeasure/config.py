"""
Configuration & Path Management
===============================
This module serves as the central registry for file paths and global constants.

Why is this file needed?
------------------------
1. Abstraction: It prevents magic numbers (zoom limits, snap radius, autosave
   delay...) from being scattered throughout the code.
2. Deployment: It resolves the per-user autosave location.

Exports:
    MIN_SCALE, MAX_SCALE: Zoom limits of the view transform.
    SNAP_RADIUS_SCREEN, SNAP_MIN_SCORE: Edge snap search parameters.
    AUTOSAVE_DELAY_MS: Debounce interval of the autosave.
    get_autosave_path(): Absolute path of the recovery document.
    get_log_path(): Rotating log file beside the autosave document.
"""
import os
from typing import Optional

from PySide6.QtCore import QStandardPaths


# --- View transform ---
MIN_SCALE: float = 0.05
MAX_SCALE: float = 80.0

# --- Point picking ---
DEGENERATE_DISTANCE: float = 1e-4  # two clicks closer than this are "the same point"
SNAP_RADIUS_SCREEN: float = 12.0  # screen pixels
SNAP_MIN_SCORE: float = 24.0
SNAP_MOVED_DISTANCE: float = 0.1  # image pixels

# --- Formatting ---
DISPLAY_DIGITS: int = 4
DEFAULT_UNIT: str = "µm"
PIXEL_UNIT: str = "px"
MAX_VISIBLE_RESULTS: int = 120

# --- Persistence ---
PROJECT_FORMAT_VERSION: int = 1
PROJECT_EXTENSION: str = "imeas"
DEFAULT_PROJECT_NAME: str = "MeasureProject"
AUTOSAVE_DELAY_MS: int = 900
AUTOSAVE_FILE_NAME: str = f"last-project.{PROJECT_EXTENSION}"
AUTOSAVE_DIR_ENV: str = "IMAGEMEASURE_AUTOSAVE_DIR"
MEASURED_SUFFIX: str = "_measured"

# --- Logging ---
LOG_FILE_NAME: str = "imagemeasure.log"
LOG_FILE_ENV: str = "IMAGEMEASURE_LOG_FILE"
LOG_MAX_BYTES: int = 2 * 1024 * 1024
LOG_BACKUP_COUNT: int = 3

# --- Preferences (QSettings keys) ---
PREF_ROUNDING: str = "measure/rounding"
PREF_CONTINUOUS: str = "measure/continuous"
PREF_EDGE_SNAP: str = "measure/edge_snap"

# --- Image files ---
SUPPORTED_EXTENSIONS: frozenset[str] = frozenset({
    ".png", ".jpg", ".jpeg", ".tif", ".tiff", ".bmp", ".gif", ".webp", ".heic", ".heif",
})


def _app_data_dir() -> Optional[str]:
    base = os.environ.get(AUTOSAVE_DIR_ENV)
    if not base:
        base = QStandardPaths.writableLocation(QStandardPaths.StandardLocation.AppDataLocation)
    if not base:
        return None
    try:
        os.makedirs(base, exist_ok=True)
    except OSError:
        return None
    return base


def get_autosave_path() -> Optional[str]:
    """
    Absolute path of the autosave document, or None when no writable
    location can be created.

    The directory can be overridden with the IMAGEMEASURE_AUTOSAVE_DIR
    environment variable; otherwise the per-user application data location
    reported by Qt is used.
    """
    base = _app_data_dir()
    return os.path.join(base, AUTOSAVE_FILE_NAME) if base else None


def get_log_path() -> Optional[str]:
    """IMAGEMEASURE_LOG_FILE if set, else the log file in the application data directory."""
    override = os.environ.get(LOG_FILE_ENV)
    if override:
        return override
    base = _app_data_dir()
    return os.path.join(base, LOG_FILE_NAME) if base else None
