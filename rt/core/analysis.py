"""
analysis.py: narrative race analysis via the Gemini generateContent API.

The race is flattened into a plain-text summary on the UI thread; only that
string crosses over to the worker doing the HTTP call, so a slow or failing
request can never touch the live session.
"""

from __future__ import annotations

import logging
import os
from typing import Iterable, Optional

import httpx

from rt.core.errors import AnalysisError
from rt.core.models import Runner
from rt.util import format_time

logger = logging.getLogger("racetimer.analysis")

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.5-flash-preview-09-2025"
API_KEY_ENV = "RACETIMER_ANALYSIS_KEY"

SYSTEM_PROMPT = (
    "Anda pelatih lari atletik. Analisis data pelari berikut. "
    "Berikan wawasan singkat untuk SETIAP pelari. "
    "Gunakan format Markdown rapi dalam Bahasa Indonesia."
)


def has_analysis_data(runners: Iterable[Runner]) -> bool:
    return any(r.splits for r in runners)


def build_race_summary(runners: Iterable[Runner]) -> str:
    blocks = []
    for r in runners:
        laps = ", ".join(format_time(s.lap) for s in r.splits)
        blocks.append(
            f"Pelari: {r.name}\n"
            f"Status: {'Selesai' if r.finished else 'Lari'}\n"
            f"Total: {format_time(r.final_time) if r.finished else '-'}\n"
            f"Laps: [{laps}]"
        )
    return "\n\n".join(blocks)


def resolve_api_key(configured: str = "") -> str:
    return configured or os.getenv(API_KEY_ENV, "")


class AnalysisClient:
    """
    Synchronous Gemini client. Meant to run off the UI thread.

    Every failure mode (transport, HTTP status, API error object, empty
    answer) surfaces as AnalysisError with a user-readable message.
    """

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL,
                 base_url: str = DEFAULT_BASE_URL, timeout: float = 60.0,
                 transport: Optional[httpx.BaseTransport] = None):
        self.api_key = api_key
        self.model = model or DEFAULT_MODEL
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def _payload(self, summary: str) -> dict:
        return {
            "contents": [{"parts": [{"text": f"Data lari saat ini:\n\n{summary}"}]}],
            "systemInstruction": {"parts": [{"text": SYSTEM_PROMPT}]},
        }

    def analyze(self, summary: str) -> str:
        """
        Send the race summary and return the model's Markdown answer.

        Args:
            summary: text from build_race_summary()

        Returns:
            The analysis text (Markdown)
        """
        if not self.enabled:
            raise AnalysisError("No analysis API key configured (Settings > Analysis)")

        url = f"{self.base_url}/models/{self.model}:generateContent"
        logger.info("Requesting race analysis from %s", url)
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                resp = client.post(url, params={"key": self.api_key}, json=self._payload(summary))
                data = resp.json()
        except httpx.InvalidURL as e:
            # A model name with characters a URL can't carry
            logger.warning("Analysis URL rejected for model %r: %s", self.model, e)
            raise AnalysisError(f"Invalid analysis model name: {self.model!r}") from e
        except httpx.HTTPError as e:
            logger.warning("Analysis request failed: %s", e)
            raise AnalysisError(f"Analysis request failed: {e}") from e
        except ValueError as e:
            logger.warning("Analysis response was not JSON (status %s)", resp.status_code)
            raise AnalysisError("Analysis service returned an unreadable response") from e

        if isinstance(data, dict) and data.get("error"):
            message = data["error"].get("message") if isinstance(data["error"], dict) else str(data["error"])
            logger.warning("Analysis API error: %s", message)
            raise AnalysisError(f"Analysis service error: {message}")
        if resp.status_code >= 400:
            raise AnalysisError(f"Analysis service returned HTTP {resp.status_code}")

        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            logger.warning("Analysis response had no candidate text: %r", data)
            raise AnalysisError("Analysis service returned no answer") from e
        if not isinstance(text, str) or not text.strip():
            raise AnalysisError("Analysis service returned no answer")

        logger.info("Received race analysis (%d characters)", len(text))
        return text
