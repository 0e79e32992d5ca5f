from openai import OpenAI, OpenAIError
from musicscan.config import settings
from musicscan.core.errors import ExternalServiceError
from typing import Any, Dict, List, Optional
import json
import re
import logging

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*")


def strip_code_fences(content: str) -> str:
    return _FENCE_RE.sub("", content or "").strip()


class AIClient:
    """Chat completions against OpenAI or any OpenAI-compatible gateway (openai_base_url)."""

    def __init__(self, client: Optional[OpenAI] = None, model: Optional[str] = None):
        self.model = model or settings.openai_model
        self._client = client

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            if not settings.openai_api_key:
                raise ExternalServiceError("ai", "OPENAI_API_KEY is not configured")
            self._client = OpenAI(api_key=settings.openai_api_key, base_url=settings.openai_base_url)
        return self._client

    def chat(self, messages: List[Dict[str, str]], temperature: float = 0.7,
             max_tokens: Optional[int] = None) -> str:
        kwargs: Dict[str, Any] = {"model": self.model, "messages": messages, "temperature": temperature}
        if max_tokens:
            kwargs["max_tokens"] = max_tokens
        try:
            resp = self.client.chat.completions.create(**kwargs)
        except OpenAIError as e:
            raise ExternalServiceError("ai", str(e), getattr(e, "status_code", None))
        content = resp.choices[0].message.content or ""
        logger.debug("AI raw response: %s", content[:500])
        return content.strip()

    def chat_json(self, messages: List[Dict[str, str]], temperature: float = 0.7,
                  max_tokens: Optional[int] = None) -> Any:
        """Like chat() but parses the reply as JSON, tolerating markdown code fences."""
        raw = self.chat(messages, temperature=temperature, max_tokens=max_tokens)
        try:
            return json.loads(strip_code_fences(raw))
        except json.JSONDecodeError as e:
            logger.error(f"AI returned invalid JSON: {e}")
            raise ExternalServiceError("ai", f"Invalid JSON in AI response: {e}")
