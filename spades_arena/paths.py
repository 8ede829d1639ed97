# spades_arena/paths.py
from __future__ import annotations

from pathlib import Path
from typing import Union

# Central location for generated results (CSV score logs, plots).
RESULTS_DIR = Path(__file__).resolve().parent / "results"


def ensure_results_dir() -> Path:
    """Create the results directory if it does not exist and return it."""
    RESULTS_DIR.mkdir(parents=True, exist_ok=True)
    return RESULTS_DIR


def resolve_results_path(path_like: Union[str, Path]) -> Path:
    """
    Resolve a user-specified path into the results directory.

    Absolute paths are returned unchanged. Relative paths are anchored inside
    RESULTS_DIR so every run writes under the same folder.
    """
    path = Path(path_like)
    if path.is_absolute():
        return path
    ensure_results_dir()
    return RESULTS_DIR / path


def timestamped_filename(prefix: str, suffix: str = ".csv") -> str:
    """'<prefix>_YYYYmmdd_HHMMSS<suffix>', used for default output names."""
    from datetime import datetime

    return f"{prefix}_{datetime.now().strftime('%Y%m%d_%H%M%S')}{suffix}"
