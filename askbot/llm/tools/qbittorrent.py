"""
askbot/llm/tools/qbittorrent.py

Read-only torrent status for the model. Results are raw structured data; the
tool executor hands them to the summarizer model (when enabled) before they
reach the chat model, since byte counts and speeds are hard for small models
to read.
"""

from __future__ import annotations

import logging
from typing import Any

from askbot.clients.qbittorrent import QBittorrentClient, QBittorrentError

from ..types import ToolFailure, ToolResult, ToolSuccess

ACTIONS = ("list", "details", "speeds", "transfer_info")
FILTERS = ("all", "downloading", "seeding", "completed", "paused", "active", "inactive", "stalled")


class QBittorrentTool:
    name = "qbittorrent"

    def __init__(self, client: QBittorrentClient):
        self._client = client
        self.schema = QBITTORRENT_SCHEMA

    def execute(self, args: dict[str, Any]) -> ToolResult:
        action = args.get("action")
        try:
            if action == "list":
                return self._list(args.get("filter"))
            if action == "details":
                return self._details(args.get("hash"))
            if action == "speeds":
                return self._speeds()
            if action == "transfer_info":
                return self._transfer_info()
        except QBittorrentError as e:
            logging.warning("QBittorrentTool: action '%s' failed: %s", action, e)
            return ToolFailure(f"qBittorrent tool error: {e}")
        return ToolFailure(f"Unknown action: {action}")

    def _list(self, filter: str | None) -> ToolResult:
        torrents = self._client.get_torrents(filter)
        return ToolSuccess({
            "action": "list",
            "filter": filter or "all",
            "count": len(torrents),
            "torrents": [
                {
                    "name": t.get("name"),
                    "hash": t.get("hash"),
                    "state": t.get("state"),
                    "progress": round(float(t.get("progress", 0)) * 100),
                    "dlSpeed": t.get("dlspeed", 0),
                    "upSpeed": t.get("upspeed", 0),
                }
                for t in torrents
            ],
        })

    def _details(self, torrent_hash: str | None) -> ToolResult:
        if not torrent_hash:
            return ToolFailure("Torrent hash is required for details action")
        props = self._client.get_torrent_properties(torrent_hash)
        total_size = props.get("total_size") or 0
        downloaded = props.get("total_downloaded") or 0
        return ToolSuccess({
            "action": "details",
            "torrent": {
                "name": props.get("name"),
                "hash": props.get("hash"),
                "comment": props.get("comment"),
                "totalSize": total_size,
                "totalDownloaded": downloaded,
                "totalUploaded": props.get("total_uploaded"),
                "progress": round(downloaded / total_size * 100) if total_size > 0 else 0,
                "additionDate": props.get("addition_date"),
                "completionDate": props.get("completion_date"),
            },
        })

    def _speeds(self) -> ToolResult:
        info = self._client.get_transfer_info()
        return ToolSuccess({
            "action": "speeds",
            "downloadSpeed": info.get("dl_info_speed"),
            "uploadSpeed": info.get("up_info_speed"),
        })

    def _transfer_info(self) -> ToolResult:
        info = self._client.get_transfer_info()
        return ToolSuccess({
            "action": "transfer_info",
            "downloadSpeed": info.get("dl_info_speed"),
            "uploadSpeed": info.get("up_info_speed"),
            "totalDownloaded": info.get("dl_info_data"),
            "totalUploaded": info.get("up_info_data"),
            "dhtNodes": info.get("dht_nodes"),
        })


# ── Schema ────────────────────────────────────────────────────────────────────

QBITTORRENT_SCHEMA = {
    "name": "qbittorrent",
    "description": (
        "Query qBittorrent for torrent status, download/upload speeds, and transfer "
        "information. Read-only access to torrent information on the local network."
    ),
    "parameters": {
        "type": "object",
        "properties": {
            "action": {
                "type": "string",
                "description": "Action to perform",
                "enum": list(ACTIONS),
            },
            "filter": {
                "type": "string",
                "description": "Filter torrents (used with list action)",
                "enum": list(FILTERS),
            },
            "hash": {
                "type": "string",
                "description": "Torrent hash (required for details action)",
            },
        },
        "required": ["action"],
    },
}
