from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional
import yaml

from .estimate import CAR_TIME_MODELS, EstimateSettings
from .geocoding import DEFAULT_USER_AGENT, NOMINATIM_SEARCH_URL
from .models import ChurchAddress
from .routing import OSRM_BASE_URL


class ConfigError(ValueError):
    pass


@dataclass
class ProvidersConfig:
    geocoder_url: str
    router_url: str
    profile: str
    user_agent: str
    timeout_seconds: float


@dataclass
class AppConfig:
    church: ChurchAddress
    providers: ProvidersConfig
    estimate: EstimateSettings


ENV_OVERRIDES = {
    "VISITROUTE_GEOCODER_URL": "geocoder_url",
    "VISITROUTE_ROUTER_URL": "router_url",
    "VISITROUTE_USER_AGENT": "user_agent",
}


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' must be a mapping")
    return value


def _load_church(church: Dict[str, Any]) -> ChurchAddress:
    full_address = str(church.get("full_address", "")).strip()
    if not full_address:
        raise ConfigError("church.full_address is required")
    return ChurchAddress(
        name=str(church.get("name", "Church")),
        full_address=full_address,
        postal_code=str(church.get("postal_code", "") or ""),
        city=str(church.get("city", "") or ""),
        state=str(church.get("state", "") or ""),
        country=str(church.get("country", "Brasil")),
    )


def _load_estimate(estimate: Dict[str, Any]) -> EstimateSettings:
    defaults = EstimateSettings()
    car_time_model = str(estimate.get("car_time_model", defaults.car_time_model))
    if car_time_model not in CAR_TIME_MODELS:
        raise ConfigError(f"estimate.car_time_model must be one of {', '.join(CAR_TIME_MODELS)}")
    try:
        return EstimateSettings(
            car_seconds_per_km=float(estimate.get("car_seconds_per_km", defaults.car_seconds_per_km)),
            moto_factor=float(estimate.get("moto_factor", defaults.moto_factor)),
            walk_minutes_per_km=float(estimate.get("walk_minutes_per_km", defaults.walk_minutes_per_km)),
            fare_per_km=float(estimate.get("fare_per_km", defaults.fare_per_km)),
            fare_minimum=int(estimate.get("fare_minimum", defaults.fare_minimum)),
            fare_min_factor=float(estimate.get("fare_min_factor", defaults.fare_min_factor)),
            fare_max_factor=float(estimate.get("fare_max_factor", defaults.fare_max_factor)),
            car_time_model=car_time_model,
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid estimate setting: {e}") from e


def _timeout(value: Any) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid providers.timeout_seconds: {e}") from e
    if timeout <= 0:
        raise ConfigError("providers.timeout_seconds must be positive")
    return timeout


def load_config(path: str, environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    p = Path(path)
    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except OSError as e:
        raise ConfigError(f"cannot read config {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config root must be a mapping")

    providers = _section(data, "providers")
    provider_values: Dict[str, Any] = {
        "geocoder_url": str(providers.get("geocoder_url", NOMINATIM_SEARCH_URL)),
        "router_url": str(providers.get("router_url", OSRM_BASE_URL)),
        "user_agent": str(providers.get("user_agent", DEFAULT_USER_AGENT)),
    }
    for env_name, key in ENV_OVERRIDES.items():
        value = (environ or {}).get(env_name, "")
        if value:
            provider_values[key] = value

    return AppConfig(
        church=_load_church(_section(data, "church")),
        providers=ProvidersConfig(
            profile=str(providers.get("profile", "driving")),
            timeout_seconds=_timeout(providers.get("timeout_seconds", 8)),
            **provider_values,
        ),
        estimate=_load_estimate(_section(data, "estimate")),
    )
