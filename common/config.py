from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict

import yaml


DEFAULTS: Dict[str, Any] = {
    "logging": {"level": None},
    "cache": {"root": "runtime/cache"},
    "http": {"timeout_s": 10.0},
    "location": {
        "cache_key": "user_geo_cache_v1",
        "ttl_s": 3600,
        "providers": ["ipwho", "ipapi", "prompt"],
        "ipwho_url": "https://ipwho.is/",
        "ipapi_url": "https://ipapi.co/json/",
        "prompt": True,
    },
    "iss": {
        "url": "https://api.wheretheiss.at/v1/satellites/25544",
        "cache_key": "iss_pos_cache_v1",
        "rate_limit_window_s": 2.0,
        "poll_interval_s": 5.0,
        "stale_ttl_s": 60.0,
    },
    "ip": {"url": "https://api.ipify.org?format=json"},
    "orbit_view": {"width": 480, "height": 480, "fps": 30},
    "content": {
        "articles": "content/articles.yaml",
        "now": "content/now.yaml",
    },
}


def _merge(base: Dict[str, Any], over: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for k, v in over.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out


def load_config(path: str = "config/params.yaml") -> Dict[str, Any]:
    """
    Load YAML params over the built-in defaults.
    A missing file yields the defaults; an empty file is treated as {}.
    """
    if not Path(path).exists():
        return copy.deepcopy(DEFAULTS)
    with open(path, "r") as f:
        P = yaml.safe_load(f) or {}
    if not isinstance(P, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return _merge(copy.deepcopy(DEFAULTS), P)
