"""
Scraper Configuration - YAML-driven tuning for the LawPhil pipeline.

Sections:
- fetcher: rate, timeout, retry policy, user agent, allowed domains
- sanity: minimum HTML length for the block-page gate
- min_units: per-category fallback threshold
- acts: year-page batch concurrency and delay

Missing keys fall back to DEFAULT_SCRAPER_CONFIG.
"""
import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)


DEFAULT_SCRAPER_CONFIG: Dict[str, Any] = {
    "fetcher": {
        "max_rps": 1,
        "timeout_seconds": 30,
        "retry_attempts": 3,
        "retry_delay_seconds": 1.0,
        "user_agent": "LawEntryBot/1.0 (contact@example.com)",
        "allowed_domains": ["lawphil.net"],
    },
    "sanity": {
        "min_html_length": 5000,
        "sniff_chars": 2000,
    },
    "min_units": {
        "constitution_1987": 150,
    },
    "acts": {
        "max_concurrency": 3,
        "batch_delay_seconds": 1.0,
    },
}


def _default_config_path() -> str:
    return os.environ.get("LAWPHIL_SCRAPER_CONFIG") or str(
        Path(__file__).parent.parent / "config" / "lawphil_scraper.yaml"
    )


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge override into a copy of base, recursing into nested dicts."""
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_scraper_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load scraper configuration from YAML, merged over defaults.

    Args:
        config_path: Path to YAML config file.
                     Defaults to backend/config/lawphil_scraper.yaml

    Returns:
        Complete configuration dict
    """
    path = config_path or _default_config_path()
    try:
        with open(path, "r") as f:
            loaded = yaml.safe_load(f) or {}
            logger.info(f"Loaded scraper config from {path}")
    except FileNotFoundError:
        logger.warning(f"Scraper config not found at {path}, using defaults")
        loaded = {}

    return _deep_merge(DEFAULT_SCRAPER_CONFIG, loaded)


def get_min_units(config: Dict[str, Any], category: str) -> int:
    """Minimum primary-parser unit count for a category (0 disables fallback)."""
    return int(config.get("min_units", {}).get(category, 0) or 0)


# Global instance (lazy init)
_scraper_config: Optional[Dict[str, Any]] = None


def get_scraper_config() -> Dict[str, Any]:
    """Get the process-wide scraper configuration."""
    global _scraper_config
    if _scraper_config is None:
        _scraper_config = load_scraper_config()
    return _scraper_config
