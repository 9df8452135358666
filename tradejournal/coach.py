# coach.py
"""AI trade coach backed by the Gemini ``generateContent`` REST endpoint.

``TradeCoach.analyze`` makes exactly one request and always returns a
string: the model's feedback, or a fixed message the UI can show as-is.
"""

import logging
from typing import Any, Dict, Optional

import requests

from .config import DEFAULT_GEMINI_MODEL
from .models import Trade

log = logging.getLogger(__name__)

BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_TIMEOUT = 60

NO_ANALYSIS_MESSAGE = "Could not generate analysis."
ERROR_MESSAGE = "Error connecting to AI Coach. Please check your API key or try again later."

PROMPT_TEMPLATE = """
You are an expert trading psychology coach and technical analyst for the **Indian Stock Market (NSE/BSE)**.
Analyze the following trade entry and provide constructive feedback in 3 bullet points.

Context: The trader trades Options (F&O) and Equity.
Focus on risk management, psychology, and Indian market context (Nifty/BankNifty levels, Expiry dynamics) based on the notes.

Trade Details:
Symbol: {symbol}
Type: {type}
Entry: {entry}
Exit: {exit}
P&L: {pnl}
Strategy: {setup}
Trader's Notes: "{notes}"

Output format:
1. [Technical Observation] (Mention key levels if symbol is NIFTY/BANKNIFTY)
2. [Psychological/Risk Insight]
3. [Actionable Advice for next trade]

Keep it concise and professional.
"""


def _fmt(value: Optional[float]) -> str:
    # a zero exit or P&L reads as "not available", like an empty form field
    if not value:
        return "N/A"
    return f"{value:g}"


def build_prompt(trade: Trade) -> str:
    return PROMPT_TEMPLATE.format(
        symbol=trade.symbol,
        type=trade.type.value,
        entry=f"{trade.entry_price:g}",
        exit=_fmt(trade.exit_price),
        pnl=_fmt(trade.pnl),
        setup=trade.setup,
        notes=trade.notes,
    ).strip()


def _extract_text(data: Dict[str, Any]) -> str:
    """Join the text parts of the first candidate."""
    candidates = data.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(p.get("text", "") for p in parts if isinstance(p, dict)).strip()


class TradeCoach:
    def __init__(self, api_key: str, model: str = DEFAULT_GEMINI_MODEL,
                 timeout: float = DEFAULT_TIMEOUT) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    def _generate(self, prompt: str) -> Dict[str, Any]:
        url = f"{BASE_URL}/models/{self.model}:generateContent"
        r = self.session.post(
            url,
            headers={"x-goog-api-key": self.api_key},
            json={"contents": [{"parts": [{"text": prompt}]}]},
            timeout=self.timeout,
        )
        r.raise_for_status()
        return r.json()

    def analyze(self, trade: Trade) -> str:
        """Return coaching feedback for ``trade``; never raises."""
        if not self.api_key:
            log.error("AI Analysis Error: GEMINI_API_KEY is not configured")
            return ERROR_MESSAGE
        try:
            data = self._generate(build_prompt(trade))
            text = _extract_text(data)
        except requests.RequestException as e:
            log.error("AI Analysis Error for trade %s: %s", trade.id, e)
            return ERROR_MESSAGE
        except Exception:
            log.exception("AI Analysis Error for trade %s: unreadable response", trade.id)
            return ERROR_MESSAGE
        return text or NO_ANALYSIS_MESSAGE
