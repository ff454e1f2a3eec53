"""
askbot/clients/qbittorrent.py

Read-only HTTP client for the qBittorrent WebUI API v2.

No login is performed: the bot is expected to run on a host whitelisted in
qBittorrent's "Bypass authentication for clients on localhost / in subnet"
settings. Every request is timed into `qbittorrent_request_duration_seconds`.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import requests

from askbot.metrics import qbittorrent_available, qbittorrent_request_duration


class QBittorrentError(Exception):
    """Raised when the qBittorrent API cannot be reached or returns an error."""


class QBittorrentClient:
    def __init__(
        self,
        host: str,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ):
        self.host = host.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    # ── Public API ──────────────────────────────────────────────────────────

    def get_torrents(self, filter: str | None = None) -> list[dict[str, Any]]:
        params = {"filter": filter} if filter else None
        return self._request("/api/v2/torrents/info", params)

    def get_torrent_properties(self, torrent_hash: str) -> dict[str, Any]:
        props = self._request("/api/v2/torrents/properties", {"hash": torrent_hash})
        # /properties does not echo the hash back; keep it for callers.
        props.setdefault("hash", torrent_hash)
        return props

    def get_transfer_info(self) -> dict[str, Any]:
        return self._request("/api/v2/transfer/info")

    def is_available(self) -> bool:
        start = time.perf_counter()
        try:
            response = self._session.get(
                f"{self.host}/api/v2/app/version", timeout=self.timeout
            )
            ok = response.ok
        except requests.RequestException as e:
            logging.warning("QBittorrentClient: %s unreachable: %s", self.host, e)
            ok = False
        finally:
            qbittorrent_request_duration.observe(time.perf_counter() - start)
        qbittorrent_available.set(1 if ok else 0)
        return ok

    # ── Internals ───────────────────────────────────────────────────────────

    def _request(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        url = f"{self.host}{endpoint}"
        start = time.perf_counter()
        try:
            response = self._session.get(url, params=params, timeout=self.timeout)
            if not response.ok:
                raise QBittorrentError(
                    f"qBittorrent API error: {response.status_code} {response.reason}"
                )
            return response.json()
        except QBittorrentError:
            raise
        except (requests.RequestException, ValueError) as e:
            raise QBittorrentError(f"Failed to fetch from qBittorrent: {e}") from e
        finally:
            qbittorrent_request_duration.observe(time.perf_counter() - start)
