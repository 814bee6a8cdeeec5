# inventory_sync/services/label_generator.py
"""
AI enrichment client.

Given an item name, asks a chat-completions endpoint for a category and a
reorder-frequency label. The category is closed over ItemCategory; anything
the model invents outside that set becomes OTHER. Every failure mode returns
an insufficient_data result instead of raising.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from inventory_sync.core.config import get_settings
from inventory_sync.core.enums import ItemCategory, LabelStatus
from inventory_sync.core.exceptions import EnrichmentError
from inventory_sync.schemas.enrichment import AILabelResult

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = f"""You are an AI assistant that categorizes inventory items for retail businesses.
Your task is to analyze product names and provide:
1. A category, one of: {", ".join(c.value for c in ItemCategory)}
2. A recommended reorder frequency (e.g., "daily", "weekly", "biweekly", "monthly")
3. A confidence score (0-100)

If you cannot determine a reasonable category from the product name, respond with:
{{"status": "insufficient_data", "reason": "Unable to classify product"}}

Otherwise respond with:
{{"status": "success", "category": "<category>", "label": "<frequency>", "confidence": <score>}}

Never hallucinate or guess wildly. Only classify if you have reasonable confidence."""


class LabelGenerator(ABC):

    @abstractmethod
    async def label(self, item_name: str) -> AILabelResult:
        """Classify an item by name"""
        pass


class OpenAILabelGenerator(LabelGenerator):

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 30.0,
    ):
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        self.model = model or settings.OPENAI_MODEL
        self.base_url = (base_url or settings.OPENAI_BASE_URL).rstrip("/")
        self.timeout = timeout

    def _get_headers(self):
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def label(self, item_name: str) -> AILabelResult:
        if not item_name or not item_name.strip():
            return AILabelResult.insufficient("Item name is empty or invalid")

        if not self.api_key:
            return AILabelResult.insufficient("AI labelling is not configured")

        try:
            content = await self._request_completion(item_name)
        except EnrichmentError as e:
            logger.error(f"Label request for '{item_name}' failed: {e}")
            return AILabelResult.insufficient(e.reason)

        return self.parse_content(content)

    async def _request_completion(self, item_name: str) -> Optional[str]:
        """
        Raises:
            EnrichmentError: non-200 status, network failure or a malformed envelope
        """
        body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": f'Classify this inventory item: "{item_name}". Respond in JSON format.'},
            ],
            "temperature": 0.3,
            "response_format": {"type": "json_object"},
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/chat/completions",
                    headers=self._get_headers(),
                    json=body,
                )
        except (httpx.RequestError, httpx.TimeoutException) as e:
            raise EnrichmentError(f"network error: {e}", reason="AI service error")

        if response.status_code != 200:
            raise EnrichmentError(f"status {response.status_code}: {response.text[:200]}", reason="AI service error")

        try:
            return response.json()["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise EnrichmentError(f"unexpected response: {e}", reason="No response from AI model")

    @staticmethod
    def parse_content(content: Optional[str]) -> AILabelResult:
        if not content:
            return AILabelResult.insufficient("No response from AI model")

        try:
            data = json.loads(content)
        except json.JSONDecodeError:
            return AILabelResult.insufficient("Unparsable AI response")

        if not isinstance(data, dict) or data.get("status") != LabelStatus.SUCCESS.value:
            reason = data.get("reason") if isinstance(data, dict) else None
            return AILabelResult.insufficient(reason or "Unable to classify product")

        confidence = data.get("confidence")
        try:
            confidence = float(confidence) if confidence is not None else None
        except (TypeError, ValueError):
            confidence = None

        return AILabelResult(
            status=LabelStatus.SUCCESS,
            category=ItemCategory.coerce(data.get("category")),
            label=(str(data["label"]).strip() or None) if data.get("label") else None,
            confidence=confidence,
        )
