"""
Firebase Realtime Database feed over the REST API.

The glove firmware overwrites a single record (default path ``SensorData``).
Each poll() reads that record once and publishes it to subscribers when it
changed since the last delivery.
"""

import logging
import time
from typing import Any, Dict, Optional

import requests
from requests.exceptions import RequestException

from ...config import FeedSettings
from ..source import FeedSource


logger = logging.getLogger(__name__)


class FirebaseFeedSource(FeedSource):
    """
    Polling feed for a Firebase Realtime Database record.

    Transport errors never escape poll(); they are logged and counted in
    diagnostics, and the caller simply gets no payload for that tick.
    """

    def __init__(self, settings: FeedSettings, session: Optional[requests.Session] = None):
        """
        Initialize feed.

        Args:
            settings: Database URL, record path, secret and timeout
            session: HTTP session to use (a new one is created if omitted)
        """
        if not settings.is_configured:
            raise ValueError("FeedSettings.database_url is required for the Firebase feed")
        super().__init__()
        self.settings = settings
        self._session = session if session is not None else requests.Session()
        self._last_payload: Optional[Dict[str, Any]] = None
        self._closed = False

        self.diagnostics = {
            "successes": 0,
            "failures": 0,
            "latency": 0.0,
            "status": "Initializing",
        }

    @property
    def url(self) -> str:
        base = self.settings.database_url.rstrip("/")
        path = self.settings.path.strip("/")
        return f"{base}/{path}.json"

    def fetch(self) -> Optional[Any]:
        """
        Read the record once.

        Returns:
            Decoded JSON value, or None on any transport or decode error
        """
        params = {"auth": self.settings.auth_secret} if self.settings.auth_secret else None
        start = time.time()
        try:
            response = self._session.get(self.url, params=params, timeout=self.settings.timeout)
            response.raise_for_status()
            data = response.json()
        except (RequestException, ValueError) as e:
            self.diagnostics["failures"] += 1
            self.diagnostics["status"] = f"Failed: {type(e).__name__}"
            logger.warning("Feed request to %s failed: %s", self.settings.path, e)
            return None

        self.diagnostics["successes"] += 1
        self.diagnostics["latency"] = time.time() - start
        if self.diagnostics["status"] != "Connected":
            logger.info("Connected to feed %s", self.settings.path)
        self.diagnostics["status"] = "Connected"
        return data

    def poll(self) -> Optional[Dict[str, Any]]:
        """
        Fetch the record and publish it if it changed.

        Returns:
            The payload that was published, or None
        """
        if self._closed:
            return None

        data = self.fetch()
        if data is None or data == self._last_payload:
            return None

        self._last_payload = data
        self._publish(data)
        return data

    def close(self) -> None:
        """Drop subscribers and close the HTTP session."""
        if self._closed:
            return
        self._closed = True
        self._subscriptions.clear()
        self._session.close()
        logger.info("Feed %s closed", self.settings.path)
