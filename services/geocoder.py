import random
import time
from dataclasses import dataclass
from typing import Dict, List, Optional

import requests

from config.logger import logger, log_and_warn
from config.envs import (
    GEOCODER_PROVIDERS, NOMINATIM_URL, GEOCODER_USER_AGENT, GEOCODER_TIMEOUT,
    GEOCODER_RETRIES, GEOCODER_BACKOFF, GOOGLE_GEOCODER_KEY,
)

GOOGLE_GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"

# Statuses worth another attempt; anything else non-2xx fails immediately
RETRY_STATUS_CODES = {429, 500, 502, 503, 504}


class GeocodingError(Exception):
    """Transport or payload failure talking to a geocoding provider."""


@dataclass
class GeocodeResult:
    success: bool
    lat: Optional[float] = None
    lng: Optional[float] = None
    provider: Optional[str] = None

    @classmethod
    def failed(cls, provider: str = None) -> "GeocodeResult":
        return cls(success=False, provider=provider)

    @property
    def lat_lng_pair(self) -> list:
        return [self.lat, self.lng]


def _normalize(address: str) -> str:
    return " ".join(address.strip().lower().split())


class HttpGeocoder:
    """
    Base for geocoders backed by a JSON HTTP API.
    Subclasses supply the endpoint, request params and payload parsing.
    Results (including misses) are cached per normalized address; errors are not.
    """
    name = "http"
    url = None

    def __init__(
        self,
        user_agent: str = GEOCODER_USER_AGENT,
        timeout: float = GEOCODER_TIMEOUT,
        retries: int = GEOCODER_RETRIES,
        backoff: float = GEOCODER_BACKOFF,
        session: requests.Session = None,
    ):
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": user_agent})
        self.timeout = timeout
        self.retries = max(1, retries)
        self.backoff = backoff
        self._cache: Dict[str, GeocodeResult] = {}

    def geocode(self, address: str) -> GeocodeResult:
        key = _normalize(address or "")
        if not key:
            return GeocodeResult.failed(self.name)
        if key in self._cache:
            return self._cache[key]

        payload = self._request(self._params(key))
        result = self._parse(payload)
        self._cache[key] = result

        if result.success:
            logger.info(f"[Geocoder] {self.name} resolved '{address}' to ({result.lat}, {result.lng})")
        else:
            logger.info(f"[Geocoder] {self.name} found no match for '{address}'")
        return result

    def _params(self, address: str) -> dict:
        raise NotImplementedError

    def _parse(self, payload) -> GeocodeResult:
        raise NotImplementedError

    def _request(self, params: dict):
        """GET the provider endpoint with retry/backoff for transient failures."""
        last_error = None
        for attempt in range(1, self.retries + 1):
            try:
                resp = self._session.get(self.url, params=params, timeout=self.timeout)
                if resp.status_code in RETRY_STATUS_CODES:
                    last_error = GeocodingError(f"HTTP {resp.status_code}")
                else:
                    resp.raise_for_status()
                    return resp.json()
            except requests.HTTPError as e:
                raise GeocodingError(f"{self.name} returned {e}") from e
            except (requests.ConnectionError, requests.Timeout) as e:
                last_error = e
            except ValueError as e:
                raise GeocodingError(f"{self.name} returned malformed JSON: {e}") from e

            logger.warning(f"[Geocoder] {self.name} request failed (attempt {attempt}): {last_error}")
            if attempt < self.retries:
                sleep_time = self.backoff * (2 ** (attempt - 1))
                sleep_time += random.uniform(0, 0.5)  # jitter
                logger.info(f"[Geocoder] Retrying in {sleep_time:.1f}s...")
                time.sleep(sleep_time)

        raise GeocodingError(f"{self.name} gave up after {self.retries} attempts: {last_error}")


class NominatimGeocoder(HttpGeocoder):
    """OpenStreetMap Nominatim search API."""
    name = "nominatim"

    def __init__(self, base_url: str = NOMINATIM_URL, **kwargs):
        super().__init__(**kwargs)
        self.url = base_url

    def _params(self, address: str) -> dict:
        return {"q": address, "format": "json", "limit": 1}

    def _parse(self, payload) -> GeocodeResult:
        if not payload:
            return GeocodeResult.failed(self.name)
        try:
            item = payload[0]
            return GeocodeResult(
                success=True,
                lat=float(item["lat"]),
                lng=float(item["lon"]),
                provider=self.name,
            )
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise GeocodingError(f"unexpected nominatim payload: {e}") from e


class GoogleGeocoder(HttpGeocoder):
    """Google Maps Geocoding API. Needs an API key."""
    name = "google"
    url = GOOGLE_GEOCODE_URL

    def __init__(self, api_key: str, **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key

    def _params(self, address: str) -> dict:
        return {"address": address, "key": self.api_key}

    def _parse(self, payload) -> GeocodeResult:
        status = (payload or {}).get("status")
        if status == "ZERO_RESULTS":
            return GeocodeResult.failed(self.name)
        if status != "OK":
            detail = payload.get("error_message", "") if payload else ""
            raise GeocodingError(f"google status {status} {detail}".strip())
        try:
            location = payload["results"][0]["geometry"]["location"]
            return GeocodeResult(
                success=True,
                lat=float(location["lat"]),
                lng=float(location["lng"]),
                provider=self.name,
            )
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise GeocodingError(f"unexpected google payload: {e}") from e


class MultiGeocoder:
    """
    Tries each provider in order and returns the first successful result.
    A provider error moves on to the next provider; if every provider errored,
    GeocodingError is raised, otherwise a failed result is returned.
    """
    name = "multi"

    def __init__(self, providers: List):
        self.providers = list(providers)

    def geocode(self, address: str) -> GeocodeResult:
        failures = []
        for provider in self.providers:
            provider_name = getattr(provider, "name", type(provider).__name__)
            try:
                result = provider.geocode(address)
            except Exception as e:
                log_and_warn("Geocoder", f"{provider_name} failed for '{address}'", e)
                failures.append(f"{provider_name}: {e}")
                continue
            if result.success:
                return result

        if self.providers and len(failures) == len(self.providers):
            raise GeocodingError("; ".join(failures))
        return GeocodeResult.failed(self.name)


def build_geocoder(provider_names: List[str] = None, session: requests.Session = None) -> MultiGeocoder:
    """Build the configured provider chain (GEOCODER_PROVIDERS by default)."""
    names = GEOCODER_PROVIDERS if provider_names is None else provider_names
    providers = []
    for name in names:
        if name == "nominatim":
            providers.append(NominatimGeocoder(session=session))
        elif name == "google":
            if not GOOGLE_GEOCODER_KEY:
                log_and_warn("Geocoder", "skipping google provider", "GOOGLE_GEOCODER_KEY is not set")
                continue
            providers.append(GoogleGeocoder(GOOGLE_GEOCODER_KEY, session=session))
        else:
            raise ValueError(f"Unknown geocoding provider: {name}")

    if not providers:
        logger.warning("[Geocoder] No geocoding providers configured; events will not be geocoded.")
    return MultiGeocoder(providers)
