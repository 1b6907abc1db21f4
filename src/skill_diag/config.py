"""Settings loading for the diagnostic tool.

Settings come from package defaults, optionally overlaid with a YAML file
named by argument or by the ``SKILL_DIAG_CONFIG`` environment variable.
"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

DATA_DIR = Path.home() / ".skill_diag"

DEFAULTS: dict[str, Any] = {
    "db_path": str(DATA_DIR / "diagnostic.db"),
    "test_size": 50,
    "min_pool_size": 1,
    "store_timeout": 5.0,
    "normalize_answers": False,
    "results_cache": str(DATA_DIR / "last_results.json"),
}


@dataclass(frozen=True)
class Settings:
    db_path: str = DEFAULTS["db_path"]
    test_size: int = DEFAULTS["test_size"]
    min_pool_size: int = DEFAULTS["min_pool_size"]
    store_timeout: float = DEFAULTS["store_timeout"]
    normalize_answers: bool = DEFAULTS["normalize_answers"]
    results_cache: str = DEFAULTS["results_cache"]


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return data


def validate_settings(cfg: dict[str, Any]) -> Settings:
    """Merge ``cfg`` over the defaults and check value ranges."""
    merged = dict(DEFAULTS)
    merged.update({k: v for k, v in cfg.items() if k in DEFAULTS})

    test_size = int(merged["test_size"])
    min_pool_size = int(merged["min_pool_size"])
    timeout = float(merged["store_timeout"])
    if test_size <= 0:
        raise ValueError(f"test_size must be positive, got {test_size}")
    if min_pool_size <= 0:
        raise ValueError(f"min_pool_size must be positive, got {min_pool_size}")
    if min_pool_size > test_size:
        raise ValueError(
            f"min_pool_size ({min_pool_size}) cannot exceed test_size ({test_size})"
        )
    if timeout <= 0:
        raise ValueError(f"store_timeout must be positive, got {timeout}")

    return Settings(
        db_path=str(Path(merged["db_path"]).expanduser()),
        test_size=test_size,
        min_pool_size=min_pool_size,
        store_timeout=timeout,
        normalize_answers=bool(merged["normalize_answers"]),
        results_cache=str(Path(merged["results_cache"]).expanduser()),
    )


def load_settings(path: Optional[str] = None) -> Settings:
    path = path or os.environ.get("SKILL_DIAG_CONFIG")
    cfg = _load_yaml(Path(path)) if path else {}
    return validate_settings(cfg)
