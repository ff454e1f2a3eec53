"""
Top-level package for the Discord tool-calling bot.

This package hosts:
- config loading (YAML + environment overrides) and validation
- Discord client, slash commands and error notification
- the Ollama chat/summarizer services and the tool-calling loop
- Prometheus metrics and the /metrics + /health HTTP server
"""

__version__ = "0.1.0"
