# miqat/utils/config.py
import logging
import os
import yaml

log = logging.getLogger(__name__)

class AttrDict(dict):
    """Dict that also supports attribute access: cfg.crosscheck and cfg['crosscheck'] both work."""
    def __getattr__(self, item):
        try:
            return self[item]
        except KeyError as e:
            raise AttributeError(item) from e
    def __setattr__(self, key, value):
        self[key] = value

def _to_attr(obj):
    if isinstance(obj, dict):
        return AttrDict({k: _to_attr(v) for k, v in obj.items()})
    if isinstance(obj, list):
        return [_to_attr(x) for x in obj]
    return obj

# env var -> (section, key, cast)
ENV_OVERRIDES = {
    "MIQAT_TOLERANCE_DEFAULT": ("crosscheck", "default_tolerance", float),
    "MIQAT_TOLERANCE_STRICT": ("crosscheck", "strict_tolerance", float),
    "MIQAT_CRITICAL_THRESHOLD": ("crosscheck", "critical_threshold", float),
    "MIQAT_ALADHAN_URL": ("aladhan", "base_url", str),
    "MIQAT_ALADHAN_RETRIES": ("aladhan", "retries", int),
    "MIQAT_ALADHAN_TIMEOUT_MS": ("aladhan", "timeout_ms", float),
    "MIQAT_ALADHAN_BACKOFF_MS": ("aladhan", "backoff_ms", float),
    "MIQAT_CACHE_TTL_SECONDS": ("aladhan", "cache_ttl_seconds", float),
    "MIQAT_DIYANET_URL": ("diyanet", "base_url", str),
    "MIQAT_MAGNETIC_DECLINATION": ("magnetic", "declination", float),
    "MIQAT_PRIMARY_SOURCE": ("service", "primary", str),
}

def _apply_env(data: dict) -> None:
    for name, (section, key, cast) in ENV_OVERRIDES.items():
        raw = os.getenv(name)
        if raw is None or raw.strip() == "":
            continue
        try:
            value = cast(raw.strip())
        except ValueError:
            log.warning("ignoring %s=%r (expected %s)", name, raw, cast.__name__)
            continue
        sect = data.get(section)
        if not isinstance(sect, dict):
            sect = data[section] = {}
        sect[key] = value

def load_config(path: str):
    """
    Load YAML config from `path`, then apply MIQAT_* env overrides (see ENV_OVERRIDES).
    A missing file yields just the env overrides.
    Returns an AttrDict for convenient access.
    """
    data = {}
    if path and os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    elif path:
        log.info("config file %s not found; using built-in defaults", path)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping")

    _apply_env(data)
    return _to_attr(data)
