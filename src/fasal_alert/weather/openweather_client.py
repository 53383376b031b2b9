"""
OpenWeatherMap Client
=====================

Thin client for the OpenWeatherMap current-weather endpoint.
Free tier limit: 1,000 calls/day.

Every failure mode (missing key, timeout, network error, HTTP error,
undecodable body) is raised as ``OpenWeatherError`` so callers can treat
the upstream uniformly as unavailable.
"""

import json
import socket
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Dict, Optional

from ..config import config
from ..utils.errors import OpenWeatherError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class OpenWeatherClient:
    """Blocking OpenWeatherMap client (run it off the event loop)."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openweathermap.org/data/2.5",
        timeout: float = 5.0,
        units: str = "metric",
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.units = units

    def _build_url(self, endpoint: str, lat: float, lon: float) -> str:
        query = urllib.parse.urlencode({
            "lat": lat,
            "lon": lon,
            "appid": self.api_key,
            "units": self.units,
        })
        return f"{self.base_url}/{endpoint}?{query}"

    def _get_json(self, endpoint: str, lat: float, lon: float) -> Dict[str, Any]:
        if not self.api_key:
            raise OpenWeatherError(
                "OPENWEATHER_API_KEY environment variable is not set",
                api_code="MISSING_API_KEY",
            )

        url = self._build_url(endpoint, lat, lon)
        req = urllib.request.Request(url, headers={'User-Agent': 'FasalAlert/1.0'})

        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                return json.loads(response.read().decode())

        except urllib.error.HTTPError as e:
            message = e.reason
            api_code: Any = e.code
            try:
                body = json.loads(e.read().decode())
                message = body.get("message", message)
                api_code = body.get("cod", api_code)
            except (ValueError, AttributeError):
                pass
            raise OpenWeatherError(
                f"OpenWeatherMap API error: {message}", status_code=e.code, api_code=api_code
            ) from e

        except (socket.timeout, TimeoutError) as e:
            raise OpenWeatherError(
                f"Request timeout after {self.timeout}s", api_code="TIMEOUT"
            ) from e

        except urllib.error.URLError as e:
            if isinstance(e.reason, (socket.timeout, TimeoutError)):
                raise OpenWeatherError(
                    f"Request timeout after {self.timeout}s", api_code="TIMEOUT"
                ) from e
            raise OpenWeatherError(f"Network error: {e.reason}", api_code="NETWORK_ERROR") from e

        except json.JSONDecodeError as e:
            raise OpenWeatherError(f"Malformed response: {e}", api_code="MALFORMED") from e

    def fetch_current(self, lat: float, lon: float) -> Dict[str, Any]:
        """
        Fetch current weather for a location.

        Returns:
            The raw OpenWeatherMap ``/weather`` payload
        """
        logger.info(f"Fetching weather from OpenWeatherMap: lat={lat}, lon={lon}")
        return self._get_json("weather", lat, lon)

    def check_health(self) -> bool:
        """Check that the key is valid and the service is reachable (Dhaka)."""
        try:
            self.fetch_current(23.8103, 90.4125)
            return True
        except OpenWeatherError:
            return False


_client_instance: Optional[OpenWeatherClient] = None


def get_openweather_client() -> OpenWeatherClient:
    """Get or create the shared client."""
    global _client_instance
    if _client_instance is None:
        _client_instance = OpenWeatherClient(
            api_key=config.openweather_api_key,
            base_url=config.openweather_base_url,
            timeout=config.openweather_timeout,
        )
    return _client_instance


def reset_openweather_client() -> None:
    global _client_instance
    _client_instance = None
