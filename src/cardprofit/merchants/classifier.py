"""Merchant industry classification clients."""
import json
import re
import time
from typing import Callable, Dict, Iterable, List, Optional, Protocol

import requests
from google import genai
from pydantic import BaseModel, Field, ValidationError, field_validator

from .code_cache import MerchantCodeCache
from cardprofit.catalog.models import Benefit
from cardprofit.utils.logger import get_logger
from cardprofit.utils.retry import retry_with_backoff
from cardprofit.utils.exceptions import ClassificationError, RetryableNetworkError

logger = get_logger()

_CODE_PATTERN = re.compile(
    r'"([^"]+)":\s*\{\s*"industry_code":\s*"?([^",}\s]+)"?,\s*"certainty":\s*([0-9.]+)\s*\}'
)


class MerchantClassifier(Protocol):
    def classify(self, merchants: List[str]) -> Dict[str, dict]:
        """Return {merchant: {"industry_code", "certainty"}} for the merchants it recognized."""


def parse_industry_codes(content: str) -> Dict[str, dict]:
    """Extract merchant classifications from free-form service output."""
    result = {}
    for name, code, certainty in _CODE_PATTERN.findall(content or ""):
        try:
            certainty_value = float(certainty)
        except ValueError:
            certainty_value = None
        result[name] = {
            "industry_code": int(code) if code.isdigit() else code,
            "certainty": certainty_value
        }
    return result


class IndustryBotClassifier:
    """Client for the conversational industry classification service."""

    def __init__(
        self,
        endpoint: str,
        api_key: str,
        timeout_seconds: int = 60,
        poll_interval_seconds: float = 3.0,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        max_retries: int = 3,
        retry_delay: float = 2,
        backoff_factor: float = 2
    ):
        self.endpoint = endpoint.rstrip("/")
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self.poll_interval_seconds = poll_interval_seconds
        self.session = session or requests.Session()
        self._sleep = sleep
        self._clock = clock
        self.conversation_id: Optional[str] = None
        self.message_id: Optional[str] = None
        self._send = retry_with_backoff(max_retries, retry_delay, backoff_factor)(self._post_message)

    def classify(self, merchants: List[str]) -> Dict[str, dict]:
        """
        Classify one batch of merchants.

        Failures are logged and yield an empty mapping; classification never
        fails an analysis run.
        """
        if not merchants:
            return {}

        try:
            self._start_message("\n".join(merchants))
        except (requests.RequestException, RetryableNetworkError, ValueError) as e:
            logger.error(f"Industry classification request failed: {e}")
            return {}

        logger.info(
            f"Waiting for industry codes (conversationId={self.conversation_id}, "
            f"messageId={self.message_id})"
        )
        deadline = self._clock() + self.timeout_seconds
        while self._clock() < deadline:
            content = self._fetch_reply()
            if content:
                logger.info("Industry code response received")
                return parse_industry_codes(content)
            self._sleep(self.poll_interval_seconds)

        logger.warning("Industry classification timed out")
        return {}

    def _start_message(self, prompt: str) -> None:
        self._send(prompt)

    def _post_message(self, prompt: str) -> None:
        payload = {"text": prompt, "mode": "chat"}
        if self.conversation_id:
            payload["conversationId"] = self.conversation_id

        response = self.session.post(
            f"{self.endpoint}/conversation",
            json=payload,
            headers={"x-api-key": self.api_key},
            timeout=self.timeout_seconds
        )
        if response.status_code == 429 or response.status_code >= 500:
            raise RetryableNetworkError(f"Industry service returned {response.status_code}")
        response.raise_for_status()

        body = response.json()
        self.conversation_id = body.get("conversationId") or self.conversation_id
        self.message_id = body.get("messageId") or self.message_id

    def _fetch_reply(self) -> Optional[str]:
        url = f"{self.endpoint}/conversation/{self.conversation_id}/{self.message_id}"
        try:
            response = self.session.get(url, headers={"x-api-key": self.api_key}, timeout=self.timeout_seconds)
        except requests.RequestException as e:
            logger.error(f"Polling industry service failed: {e}")
            return None

        if response.status_code != 200:
            return None
        try:
            return response.json()["message"]["content"]
        except (ValueError, KeyError, TypeError):
            return None


class MerchantCode(BaseModel):
    """Pydantic schema for one classified merchant."""
    industry_code: str = Field(description="4-digit merchant category code")
    certainty: float = Field(ge=0, le=1)

    @field_validator("industry_code", mode="before")
    @classmethod
    def _coerce_code(cls, value):
        return str(value).strip()


class MerchantCodesResponse(BaseModel):
    """Pydantic schema for LLM response."""
    merchants: Dict[str, MerchantCode]


class GeminiMerchantClassifier:
    """Classifies merchants into MCC codes with Gemini."""

    def __init__(self, api_key: str, model_name: str = "gemini-2.5-flash-lite", client=None):
        self.client = client or genai.Client(api_key=api_key)
        self.model_name = model_name
        logger.info(f"Gemini merchant classifier initialized with {self.model_name}")

    def classify(self, merchants: List[str]) -> Dict[str, dict]:
        if not merchants:
            return {}

        try:
            response = self.client.models.generate_content(
                model=self.model_name,
                contents=[self._build_prompt(merchants)]
            )
            if not response.text:
                raise ClassificationError("Gemini returned empty response")
            parsed = self._parse_response(response.text)
        except ClassificationError as e:
            logger.error(f"Gemini classification failed: {e}")
            return {}
        except Exception as e:
            logger.error(f"Gemini request failed: {e}")
            return {}

        return {
            name: {"industry_code": int(code.industry_code) if code.industry_code.isdigit() else code.industry_code,
                   "certainty": code.certainty}
            for name, code in parsed.merchants.items()
            if name in merchants
        }

    def _build_prompt(self, merchants: List[str]) -> str:
        return f"""You classify Korean card merchants into ISO 18245 merchant category codes (MCC).

Merchants (one per line):
{chr(10).join(merchants)}

Return ONLY a valid JSON object in this format:
{{
  "merchants": {{
    "<merchant name exactly as given>": {{"industry_code": "5462", "certainty": 0.9}}
  }}
}}

certainty is a number between 0 and 1. Skip merchants you cannot classify.
Do not include any explanations or markdown formatting, just the JSON object.
"""

    def _parse_response(self, response_text: str) -> MerchantCodesResponse:
        """Parse LLM JSON response."""
        cleaned = response_text.strip()
        if cleaned.startswith("```"):
            lines = cleaned.split("\n")
            cleaned = "\n".join(lines[1:-1]) if len(lines) > 2 else cleaned
            if cleaned.startswith("json"):
                cleaned = cleaned[4:].strip()

        # Remove trailing commas before closing brackets/braces
        cleaned = re.sub(r",\s*([\]}])", r"\1", cleaned)

        json_match = re.search(r"\{.*\}", cleaned, re.DOTALL)
        if json_match:
            cleaned = json_match.group(0)

        try:
            data = json.loads(cleaned)
            return MerchantCodesResponse(**data)
        except json.JSONDecodeError as e:
            logger.debug(f"Response text: {response_text[:500]}")
            raise ClassificationError(f"Invalid JSON response from LLM: {e}")
        except (ValidationError, TypeError) as e:
            raise ClassificationError(f"LLM response does not match expected schema: {e}")


def refresh_code_cache(
    benefits: Iterable[Benefit],
    cache: MerchantCodeCache,
    classifier: Optional[MerchantClassifier],
    batch_size: int = 30
) -> int:
    """
    Classify benefit merchants missing from the cache and merge the results.

    Args:
        benefits: All benefits of the card data file
        cache: Cache to update in place
        classifier: Classification client; None skips the refresh
        batch_size: Merchants per classification request

    Returns:
        Number of cache entries added or changed
    """
    all_merchants: List[str] = []
    for benefit in benefits:
        all_merchants.extend(benefit.merchants)

    new_merchants = cache.missing(all_merchants)
    if not new_merchants:
        return 0

    if classifier is None:
        logger.warning(f"{len(new_merchants)} merchants lack industry codes; no classifier configured")
        return 0

    logger.info(f"Looking up industry codes for {len(new_merchants)} new merchants")
    batch_size = max(batch_size, 1)
    results: Dict[str, dict] = {}
    for start in range(0, len(new_merchants), batch_size):
        batch = new_merchants[start:start + batch_size]
        logger.info(f"Industry code batch {start // batch_size + 1}: {len(batch)} merchants")
        results.update(classifier.classify(batch))

    changed = cache.update(results)
    logger.info(f"Industry code lookup complete: {len(results)} classified, {changed} cached")
    return changed


def build_classifier(settings, config) -> Optional[MerchantClassifier]:
    """Create the configured classifier, or None when its credentials are missing."""
    provider = (settings.classifier_provider or "").lower()

    if provider == "gemini":
        if not config.gemini_api_key:
            logger.warning("GEMINI_API_KEY is not set, skipping merchant classification")
            return None
        return GeminiMerchantClassifier(config.gemini_api_key, settings.classifier_model_name)

    if provider == "industry_bot":
        if not config.industry_bot_endpoint or not config.industry_bot_api_key:
            logger.warning(
                "INDUSTRY_BOT_ENDPOINT or INDUSTRY_BOT_API_KEY is not set, skipping merchant classification"
            )
            return None
        return IndustryBotClassifier(
            endpoint=config.industry_bot_endpoint,
            api_key=config.industry_bot_api_key,
            timeout_seconds=config.industry_bot_timeout or settings.classifier_timeout_seconds,
            poll_interval_seconds=settings.classifier_poll_interval_seconds,
            max_retries=settings.retry_max_retries,
            retry_delay=settings.retry_initial_delay_seconds,
            backoff_factor=settings.retry_backoff_factor
        )

    logger.warning(f"Unknown classifier provider '{settings.classifier_provider}', skipping classification")
    return None
