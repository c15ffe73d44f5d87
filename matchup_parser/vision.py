from typing import Optional, Protocol

import openai
from openai import OpenAI

from .errors import ErrorKind, Result
from .image import image_part
from .logging_config import LoggingConfig

logger = LoggingConfig.get_logger(__name__)

SYSTEM_PROMPT = """
You convert fantasy football matchup screenshots into strict JSON.
Return ONLY valid JSON. No commentary.

Extract an array "matchups" where each item is:
{ "homeTeam": string, "homeScore": number, "awayTeam": string, "awayScore": number }
List the matchups top to bottom as they appear.

Rules:
- Use the LARGE bold numbers as final scores (ignore smaller projections beneath).
- Team names are the BLUE team names (ignore records/rank like "1-1-0 | 6th").
- Preserve apostrophes and capitalization.
- Do not include emoji or icons.
- If a team name begins with "I", keep the "I" even if it looks like a pipe.
- If you are unsure about a character, prefer letters over punctuation.
- Only if the week number is printed on the screenshot, add "week": <number> and "weekSource": "image".
  Never guess the week and never use the number of matchups as the week.
- Output must be strict JSON: { "matchups": [...] }
""".strip()

USER_PROMPT = "Extract the final results as JSON."


class VisionClient(Protocol):
    model: str

    def extract_text(self, image: bytes, mime: str) -> Result: ...


class OpenAIVisionClient:
    """Single chat completion per image; no retries."""

    def __init__(self, api_key: str, model: str = "gpt-4o-mini", timeout: float = 60.0,
                 temperature: float = 0.0, client: Optional[OpenAI] = None):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self._client = client

    @classmethod
    def from_settings(cls, settings) -> "OpenAIVisionClient":
        return cls(settings.openai_api_key, model=settings.openai_model,
                   timeout=settings.openai_timeout_seconds, temperature=settings.openai_temperature)

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(api_key=self.api_key, timeout=self.timeout, max_retries=0)
        return self._client

    def extract_text(self, image: bytes, mime: str) -> Result:
        if self._client is None and not self.api_key:
            return Result.failure(ErrorKind.UPSTREAM_CALL_FAILED, "OPENAI_API_KEY is not configured")
        try:
            logger.debug("vision call: model=%s bytes=%d", self.model, len(image))
            resp = self.client.chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                timeout=self.timeout,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": [
                        {"type": "text", "text": USER_PROMPT},
                        image_part(image, mime),
                    ]},
                ],
            )
        except openai.APITimeoutError:
            return Result.failure(ErrorKind.UPSTREAM_CALL_FAILED, f"Vision model timed out after {self.timeout:g}s")
        except openai.OpenAIError as e:
            return Result.failure(ErrorKind.UPSTREAM_CALL_FAILED, f"Vision model call failed: {e}")

        if not resp.choices:
            return Result.failure(ErrorKind.UPSTREAM_CALL_FAILED, "Vision model returned no choices")
        return Result.success((resp.choices[0].message.content or "").strip())
