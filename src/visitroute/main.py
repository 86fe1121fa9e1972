from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
from dataclasses import asdict
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

from dotenv import load_dotenv

from .config import AppConfig, ConfigError, load_config
from .estimate import TripEstimator
from .geocoding import CoordinateLookup
from .models import Address, ChurchAddress, VisitFailure, VisitResolution
from .routing import RouteFetcher
from .visit import VisitResult, resolve_visit

CONFIG_PATH_DEFAULT = "config.yaml"

OUTCOME_LABELS = {
    "streetAndNeighborhood": "Endpoint 1/3 - high precision (street + neighborhood)",
    "zipOnly": "Endpoint 2/3 - approximate (postal code)",
    "hybridStreetZip": "Endpoint 3/3 - hybrid sweep (street + postal code)",
}


def google_maps_directions_url(church: ChurchAddress, address: Address) -> str:
    destination = ", ".join(
        (value or "").strip() for value in (address.street, address.number, address.city)
    )
    params = {
        "api": "1",
        "origin": church.full_address,
        "destination": destination,
        "travelmode": "driving",
    }
    return f"https://www.google.com/maps/dir/?{urlencode(params)}"


def _result_payload(result: VisitResult, church: ChurchAddress, address: Address) -> Dict[str, Any]:
    if isinstance(result, VisitFailure):
        return {
            "ok": False,
            "kind": result.kind.value,
            "message": result.message,
            "provider_error": result.provider_error,
            "attempted": list(result.attempted),
        }
    return {
        "ok": True,
        "origin": result.origin.as_pair(),
        "destination": result.destination.as_pair(),
        "geocoding_outcome": result.geocoding_outcome.value if result.geocoding_outcome else None,
        "destination_strategy": result.destination_strategy.value,
        "estimate": asdict(result.estimate),
        "route": [p.as_pair() for p in result.route],
        "directions_url": google_maps_directions_url(church, address),
    }


def _print_summary(result: VisitResult, church: ChurchAddress, address: Address) -> None:
    if isinstance(result, VisitFailure):
        print(f"Visit route unavailable: {result.message}")
        if result.provider_error:
            print("(the map service could not be reached for at least one lookup)")
        return

    e = result.estimate
    if result.geocoding_outcome is not None:
        label = OUTCOME_LABELS.get(result.geocoding_outcome.value, result.geocoding_outcome.value)
    else:
        label = "approximate location (city only)"
    print(f"Destination located via {label}")
    print(f"Distance:       {e.distance_km} km")
    print(f"By car:         {e.car_minutes} min")
    print(f"By motorcycle:  {e.moto_minutes} min")
    print(f"Walking:        {e.walk_minutes} min")
    print(f"Estimated fare: R$ {e.fare},00 (min R$ {e.fare_min},00, max R$ {e.fare_max},00)")
    print(f"Route points:   {len(result.route)}")
    print(f"Open in Google Maps: {google_maps_directions_url(church, address)}")


def run_visit(cfg: AppConfig, address: Address) -> VisitResult:
    providers = cfg.providers
    lookup = CoordinateLookup(
        base_url=providers.geocoder_url,
        user_agent=providers.user_agent,
        timeout=providers.timeout_seconds,
    )
    router = RouteFetcher(
        base_url=providers.router_url,
        profile=providers.profile,
        user_agent=providers.user_agent,
        timeout=providers.timeout_seconds,
    )
    return asyncio.run(
        resolve_visit(
            address,
            cfg.church,
            lookup=lookup,
            router=router,
            estimator=TripEstimator(cfg.estimate),
        )
    )


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Estimate a pastoral visit trip from the church to a member's home")
    ap.add_argument("--config", default=CONFIG_PATH_DEFAULT)
    ap.add_argument("--street")
    ap.add_argument("--number")
    ap.add_argument("--neighborhood")
    ap.add_argument("--city")
    ap.add_argument("--zip", dest="zip_code")
    ap.add_argument("--state")
    ap.add_argument("--json", action="store_true", help="print the result as JSON")
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    load_dotenv()
    try:
        cfg = load_config(args.config, environ=os.environ)
    except ConfigError as e:
        print(f"Config error: {e}")
        return 2

    address = Address(
        street=args.street,
        number=args.number,
        neighborhood=args.neighborhood,
        city=args.city,
        zip_code=args.zip_code,
        state=args.state,
    )
    result = run_visit(cfg, address)

    if args.json:
        print(json.dumps(_result_payload(result, cfg.church, address), indent=2, ensure_ascii=False))
    else:
        _print_summary(result, cfg.church, address)
    return 0 if isinstance(result, VisitResolution) else 1


if __name__ == "__main__":
    raise SystemExit(main())
