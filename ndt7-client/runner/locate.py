"""
Server discovery through the M-Lab locate v2 API.
"""

import json
import logging
from typing import Dict, List

import requests

from common.errors import LocateError
from configuration import (
    ClientConfig,
    LOCATE_DOWNLOAD_KEY,
    LOCATE_UPLOAD_KEY,
    LOCATE_CHUNK_BYTES,
    LOCATE_MAX_BODY_BYTES,
)

logger = logging.getLogger(__name__)


class Locator:
    """Resolves the nearest ndt7 server into download and upload URLs."""

    def __init__(self, url: str, timeout_seconds: float):
        self.url = url
        self.timeout_seconds = timeout_seconds

    def _fetch(self) -> bytes:
        body = b""
        try:
            with requests.get(self.url, timeout=self.timeout_seconds, stream=True) as response:
                response.raise_for_status()
                for chunk in response.iter_content(chunk_size=LOCATE_CHUNK_BYTES):
                    body += chunk
                    if len(body) >= LOCATE_MAX_BODY_BYTES:
                        break
        except requests.RequestException as e:
            raise LocateError(f"locate request failed: {e}") from e
        body = body[:LOCATE_MAX_BODY_BYTES]
        logger.debug(f"Locate returned {len(body)} bytes")
        return body

    def nearest(self) -> List[Dict[str, str]]:
        """Query locate and return the URL maps of all results.

        Raises:
            LocateError: On network, HTTP or decoding errors, or an empty result list
        """
        body = self._fetch()
        try:
            document = json.loads(body)
            results = [dict(entry["urls"]) for entry in document.get("results") or []]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise LocateError(f"invalid locate response: {e}") from e
        if len(results) < 1:
            raise LocateError("too few entries")
        return results

    def resolve(self, config: ClientConfig) -> ClientConfig:
        """Fill the download and upload URLs of ``config`` from the first result.

        Round-trip is never located; it only runs with an explicit URL.
        """
        urls = self.nearest()[0]
        config.download_url = urls.get(LOCATE_DOWNLOAD_KEY, "")
        config.upload_url = urls.get(LOCATE_UPLOAD_KEY, "")
        logger.info(f"Located server: download={config.download_url} upload={config.upload_url}")
        return config
