"""
askbot/llm/summarizer.py

Uses a small/fast Ollama model (e.g. qwen2.5:3b) to turn structured tool
output into a short, readable answer fragment before the primary model sees
it. summarize() never raises: on failure it returns a fallback string.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from ollama import Client

from .ollama_service import response_field, build_ollama_client

SYSTEM_PROMPT = """You are a concise assistant that summarizes JSON data into user-friendly text.
Rules:
- Be brief and direct
- Format numbers nicely (e.g., bytes to MB/GB, speeds as MB/s)
- Use bullet points for lists
- Don't explain what you're doing, just provide the summary
- Match the tone of the user's question"""

EMPTY_SUMMARY_FALLBACK = "Unable to summarize data."


def _base_name(model: str) -> str:
    return model.split(":", 1)[0]


class SummarizerService:
    def __init__(
        self,
        host: str,
        model: str,
        timeout: float = 30.0,
        client: Client | None = None,
    ):
        self.model = model
        self.timeout = timeout
        self.client = client or build_ollama_client(host, timeout)

    def summarize(self, data: Any, user_question: str) -> str:
        """Summarize `data` with the user's question as context."""
        user_prompt = (
            f'User asked: "{user_question}"\n\n'
            f"Here is the data to summarize:\n{json.dumps(data, indent=2, default=str)}\n\n"
            "Provide a concise, friendly summary:"
        )
        try:
            response = self.client.chat(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": user_prompt},
                ],
                stream=False,
            )
            content = response_field(response_field(response, "message"), "content")
        except Exception as e:
            logging.error("SummarizerService: summarization with '%s' failed: %s", self.model, e)
            return f"Data: {json.dumps(data, default=str)}"
        return content or EMPTY_SUMMARY_FALLBACK

    def is_available(self) -> bool:
        """True if the backend lists any model sharing this model's base name."""
        base = _base_name(self.model)
        try:
            listing = self.client.list()
        except Exception as e:
            logging.warning("SummarizerService: model listing failed: %s", e)
            return False
        for m in response_field(listing, "models") or []:
            name = response_field(m, "model") or response_field(m, "name") or ""
            if _base_name(name) == base:
                return True
        return False


def build_summarizer(config: dict[str, Any]) -> SummarizerService | None:
    """Return a SummarizerService when `summarizer.enabled` is true, else None."""
    cfg = config.get("summarizer") or {}
    if not cfg.get("enabled"):
        return None
    host = cfg.get("host") or config["ollama"]["host"]
    logging.info("SummarizerService: enabled with model '%s' on %s", cfg["model"], host)
    return SummarizerService(host=host, model=cfg["model"], timeout=cfg.get("timeout", 30))
