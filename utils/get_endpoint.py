from core.config import ConfigError, get_config


def get_endpoint(key: str) -> str:
    """Build the absolute Amadeus URL for an ``api_paths`` entry of config.yaml.

    Raises ConfigError instead of exiting so a misconfigured tool fails its own
    call without taking the server down.
    """
    _cfg = get_config() or {}
    base_url = (_cfg.get("amadeus_api_url") or "").rstrip("/")
    if not base_url:
        raise ConfigError("'amadeus_api_url' must be set in config.yaml")

    path = (_cfg.get("api_paths") or {}).get(key)
    if not path:
        raise ConfigError(f"Missing API path for key '{key}' in config.yaml under 'api_paths'")

    return f"{base_url}{path}"


def get_timeout(default: float = 30.0) -> float:
    _cfg = get_config() or {}
    return float(_cfg.get("request_timeout", default))
