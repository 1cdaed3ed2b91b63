"""
Wayfarer Backend - Weather Lookup Service
===========================================

What:  Current weather at a spot's coordinates from OpenWeatherMap.
Why:   Decorates single-spot reads. Purely auxiliary: a missing key, a slow
       provider, or an outage must never fail or stall GET /spots/{id}.
How:   httpx.AsyncClient with a per-attempt timeout, a small tenacity retry
       for transport errors, one overall deadline across the attempts, and a
       circuit breaker that skips lookups while the provider keeps failing.

Contract:
    get_weather() NEVER raises. It returns a WeatherInfo or None, and returns
    within WEATHER_DEADLINE_SECONDS.
"""

import asyncio
import logging
import time
from typing import Any, Callable, Dict, Optional

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from wayfarer.config import settings
from wayfarer.schemas.spot import WeatherInfo

logger = logging.getLogger(__name__)

ICON_URL = "https://openweathermap.org/img/wn/{icon}@2x.png"


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker
# ══════════════════════════════════════════════════════════════════════════

class CircuitBreaker:
    """
    Consecutive-failure breaker in front of the weather provider.

        closed     lookups go out; `failure_threshold` failures in a row open it
        open       lookups are skipped for `recovery_timeout` seconds
        half_open  a single trial lookup is out; every other caller is refused
                   until it reports back, then the breaker closes or reopens

    A trial that never reports back (its request was cancelled) is abandoned
    after another `recovery_timeout`, and the next caller becomes the trial.

    Not thread-safe; one instance lives on app.state per event loop.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: float = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.clock = clock
        self.failure_count = 0
        self.state = self.CLOSED
        self.opened_at: Optional[float] = None
        self.trial_started_at: Optional[float] = None

    def can_execute(self) -> bool:
        if self.state == self.CLOSED:
            return True

        now = self.clock()
        if self.state == self.OPEN:
            if now - self.opened_at < self.recovery_timeout:
                return False
            logger.info("Weather circuit half-open, sending one trial lookup")
            self.state = self.HALF_OPEN
            self.trial_started_at = now
            return True

        if now - self.trial_started_at >= self.recovery_timeout:
            logger.warning("Weather trial lookup never reported back, starting another")
            self.trial_started_at = now
            return True
        return False

    def record_success(self) -> None:
        if self.state != self.CLOSED:
            logger.info("Weather circuit closed, provider recovered")
        self.failure_count = 0
        self.state = self.CLOSED
        self.opened_at = None
        self.trial_started_at = None

    def record_failure(self) -> None:
        self.failure_count += 1
        if self.state == self.HALF_OPEN:
            self._open("trial lookup failed")
        elif self.state == self.CLOSED and self.failure_count >= self.failure_threshold:
            self._open(f"{self.failure_count} consecutive failures")

    def _open(self, reason: str) -> None:
        logger.warning("Weather circuit open for %ss: %s", self.recovery_timeout, reason)
        self.state = self.OPEN
        self.opened_at = self.clock()
        self.trial_started_at = None


# ══════════════════════════════════════════════════════════════════════════
# Weather Service
# ══════════════════════════════════════════════════════════════════════════

class WeatherService:
    """
    Error Handling Chain:
        No API key → None (lookup disabled)
        Circuit open, or a half-open trial already out → None without a network call
        Transport error → tenacity retries, then None + breaker failure
        Overall deadline passed → None + breaker failure
        Non-2xx or unexpected payload → None + breaker failure
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
        deadline: Optional[float] = None,
    ):
        self.client = client
        self.api_key = settings.openweather_api_key if api_key is None else api_key
        self.base_url = base_url or settings.weather_base_url
        self.deadline = deadline or settings.weather_deadline_seconds
        self.circuit_breaker = circuit_breaker or CircuitBreaker(
            failure_threshold=settings.weather_cb_failure_threshold,
            recovery_timeout=settings.weather_cb_recovery_timeout,
        )

    @classmethod
    def build_client(cls) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=httpx.Timeout(settings.weather_timeout_seconds))

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def get_weather(self, lat: float, lng: float) -> Optional[WeatherInfo]:
        if not self.enabled:
            return None

        if not self.circuit_breaker.can_execute():
            logger.debug("Skipping weather lookup, circuit is %s", self.circuit_breaker.state)
            return None

        try:
            payload = await asyncio.wait_for(self._fetch(lat, lng), timeout=self.deadline)
            weather = self._parse(payload)
        except asyncio.TimeoutError:
            self.circuit_breaker.record_failure()
            logger.warning("Weather lookup for (%s, %s) exceeded %ss", lat, lng, self.deadline)
            return None
        except httpx.HTTPError as e:
            self.circuit_breaker.record_failure()
            logger.warning("Weather lookup failed for (%s, %s): %s", lat, lng, str(e))
            return None
        except (KeyError, IndexError, TypeError, ValueError) as e:
            self.circuit_breaker.record_failure()
            logger.warning("Unexpected weather payload for (%s, %s): %s", lat, lng, str(e))
            return None

        self.circuit_breaker.record_success()
        return weather

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(settings.weather_retry_attempts),
        wait=wait_exponential(multiplier=0.2, max=1) + wait_random(0, 0.2),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _fetch(self, lat: float, lng: float) -> Dict[str, Any]:
        response = await self.client.get(
            self.base_url,
            params={"lat": lat, "lon": lng, "units": "metric", "appid": self.api_key},
        )
        response.raise_for_status()
        return response.json()

    @staticmethod
    def _parse(payload: Dict[str, Any]) -> WeatherInfo:
        condition = payload["weather"][0]
        return WeatherInfo(
            temp=payload["main"]["temp"],
            condition=condition["main"],
            icon=ICON_URL.format(icon=condition["icon"]),
            city=payload.get("name"),
        )
