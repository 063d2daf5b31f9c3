# smartcatalog/domain/services/reco_client.py

from __future__ import annotations
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple
import asyncio
import json
import re
import logging
from time import monotonic as _now

import openai
from openai import AsyncOpenAI
from pydantic import BaseModel

from smartcatalog.core.config import Settings
from smartcatalog.core.logging import preview
from smartcatalog.domain.models.product import Product
from smartcatalog.domain.models.recommendation import (
    NON_RETRYABLE_KINDS,
    RecoErrorKind,
    RecoFailure,
    RecoOutcome,
    RecoSuccess,
)
from smartcatalog.domain.services.constants import (
    HEALTH_CHECK_REPLY,
    KEY_FEATURE_ATTRIBUTES,
    MAX_QUERY_LENGTH,
    PROMPT_DESC_CHARS,
)
from smartcatalog.domain.services.prompts import health_prompt, system_prompt, user_task
from smartcatalog.domain.services.reco_validation import MalformedResponse, validate_recommendations

logger = logging.getLogger(__name__)

HEALTH_MAX_TOKENS = 10

# =============================================================================
#                               CONFIGURATION
# =============================================================================

class LLMConfig(BaseModel):
    """
    Everything the recommendation client needs, built once at startup.
    """
    api_key: str = ""
    model: str
    timeout_s: float = 30
    health_timeout_s: float = 10
    temperature: float = 0.1
    max_tokens: int = 1000
    max_retries: int = 3
    base_delay_s: float = 1.0
    max_delay_s: float = 10.0
    backoff_multiplier: float = 2.0
    max_query_length: int = MAX_QUERY_LENGTH

    model_config = {"frozen": True}

    @classmethod
    def from_settings(cls, settings: Settings) -> "LLMConfig":
        return cls(
            api_key=settings.OPENAI_API_KEY,
            model=settings.OPENAI_SEARCH_MODEL,
            timeout_s=settings.openai_timeout_s,
            health_timeout_s=settings.openai_health_timeout_s,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
            max_retries=settings.llm_max_retries,
            base_delay_s=settings.llm_retry_base_delay_s,
            max_delay_s=settings.llm_retry_max_delay_s,
            backoff_multiplier=settings.llm_retry_multiplier,
        )

    def backoff_delay(self, attempt: int) -> float:
        """Delay before retry number `attempt + 1` (0-based): 1s, 2s, 4s... capped."""
        return min(self.base_delay_s * (self.backoff_multiplier ** attempt), self.max_delay_s)

# =============================================================================
#                               ERROR CLASSIFICATION
# =============================================================================

def classify_error(exc: Exception) -> RecoErrorKind:
    """Map an OpenAI SDK exception to a failure kind."""
    if isinstance(exc, openai.APITimeoutError):
        return RecoErrorKind.TIMEOUT_ERROR
    if isinstance(exc, openai.RateLimitError):
        code = getattr(exc, "code", None)
        if code == "insufficient_quota" or "insufficient_quota" in str(exc):
            return RecoErrorKind.QUOTA_ERROR
        return RecoErrorKind.RATE_LIMIT_ERROR
    if isinstance(exc, openai.AuthenticationError):
        return RecoErrorKind.CONFIGURATION_ERROR
    return RecoErrorKind.API_ERROR

# =============================================================================
#                               JSON HELPERS
# =============================================================================

# Regex to strip code fences (``` or ```json) from LLM output
_CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.MULTILINE)

def _strip_fences(s: str) -> str:
    """Remove ``` or ```json fences the LLM might add."""
    return _CODE_FENCE_RE.sub("", s).strip()

def _prune_empty(obj):
    """
    Recursively drop None, blank strings and empty lists/dicts.
    Keep 0, False and other non-empty values.
    """
    if isinstance(obj, dict):
        pruned = {k: _prune_empty(v) for k, v in obj.items()}
        return {k: v for k, v in pruned.items() if not _is_empty(v)}
    if isinstance(obj, list):
        pruned = [_prune_empty(v) for v in obj]
        return [v for v in pruned if not _is_empty(v)]
    if isinstance(obj, str):
        return obj.strip() or None
    return obj

def _is_empty(v) -> bool:
    return v is None or (isinstance(v, (list, dict)) and len(v) == 0)

def _json_minify(obj: Any) -> str:
    return json.dumps(_prune_empty(obj), ensure_ascii=False, separators=(",", ":"))

# =============================================================================
#                               COMPACT HELPERS
# =============================================================================

def _key_features(attributes: Dict[str, Any]) -> List[str]:
    return [f"{k}: {attributes[k]}" for k in KEY_FEATURE_ATTRIBUTES if attributes.get(k)]

def compact_product(p: Product) -> Dict[str, Any]:
    """
    Reduce a product to the fields the model needs, bounding prompt size.
    """
    data = {
        "id": p.id,
        "name": p.name,
        "description": (p.description or "")[:PROMPT_DESC_CHARS],
        "price": f"${p.price:.2f}",
        "category": p.category,
        "brand": p.brand or "Unknown",
        "key_features": _key_features(p.attributes),
    }
    return _prune_empty(data)

# =============================================================================
#                               CLIENT
# =============================================================================

class RecommendationClient:
    """
    Single entry point to the LLM for search ranking.
    Never raises for upstream failures: returns RecoSuccess or RecoFailure(kind=...).
    """

    def __init__(
        self,
        config: LLMConfig,
        client: Optional[AsyncOpenAI] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.config = config
        self._sleep = sleep
        if client is not None:
            self._client = client
        elif config.api_key:
            # SDK retries disabled: backoff is handled here
            self._client = AsyncOpenAI(api_key=config.api_key, max_retries=0)
        else:
            self._client = None

    @property
    def configured(self) -> bool:
        return self._client is not None

    # ----- Public API --------------------------------------------------------

    async def recommend(self, query: str, products: Sequence[Product]) -> RecoOutcome:
        """
        Rank `products` against `query` and explain the best matches.
        Retries transient failures with exponential backoff.
        """
        t0 = _now()

        if not isinstance(query, str) or not query.strip():
            return RecoFailure(
                kind=RecoErrorKind.VALIDATION_ERROR,
                message="User query is required and must be a non-empty string",
            )
        if len(query) > self.config.max_query_length:
            return RecoFailure(
                kind=RecoErrorKind.VALIDATION_ERROR,
                message=f"User query must be at most {self.config.max_query_length} characters",
            )
        if not products:
            return RecoFailure(
                kind=RecoErrorKind.VALIDATION_ERROR,
                message="Products list is required and must not be empty",
            )
        if not self.configured:
            return RecoFailure(
                kind=RecoErrorKind.CONFIGURATION_ERROR,
                message="OPENAI_API_KEY is not set",
            )

        products_json = _json_minify([compact_product(p) for p in products])
        messages = [
            {"role": "system", "content": system_prompt()},
            {"role": "user", "content": user_task(query.strip(), products_json)},
        ]
        candidate_ids = {p.id for p in products}

        logger.info(f"LLM request query=\"{preview(query, 50)}\" products={len(products)} size={(len(products_json)/1024):.1f}KB")
        logger.debug(f"LLM products JSON: {preview(products_json, 2000)}")

        outcome = await self._call_with_retry(messages, candidate_ids)

        dt_ms = int((_now() - t0) * 1000)
        if isinstance(outcome, RecoSuccess):
            logger.info(f"LLM response recommendations={len(outcome.items)} time={dt_ms}ms")
        else:
            logger.error(f"LLM failure kind={outcome.kind.value} time={dt_ms}ms: {outcome.message}")
        return outcome

    async def health_check(self) -> bool:
        """
        Send a trivial prompt and verify the fixed reply.
        Short timeout, no retry, no side effects.
        """
        if not self.configured:
            logger.error("OPENAI_API_KEY is not set, LLM health check skipped")
            return False

        logger.info("Testing LLM connection...")
        try:
            resp = await asyncio.wait_for(
                self._client.chat.completions.create(
                    model=self.config.model,
                    messages=[{"role": "user", "content": health_prompt()}],
                    max_tokens=HEALTH_MAX_TOKENS,
                    temperature=0.0,
                    timeout=self.config.health_timeout_s,
                ),
                timeout=self.config.health_timeout_s,
            )
        except asyncio.TimeoutError:
            logger.error("LLM connection test timed out")
            return False
        except openai.APIError as e:
            logger.error(f"LLM connection test failed: {e}")
            return False

        content = resp.choices[0].message.content or ""
        ok = HEALTH_CHECK_REPLY in content
        if ok:
            logger.info("LLM connection successful")
        else:
            logger.warning(f"LLM connection test got unexpected reply: {content[:100]!r}")
        return ok

    # ----- Internals ---------------------------------------------------------

    async def _call_llm(self, messages: List[dict]) -> str:
        """
        One completion call. Returns the raw content string.
        Raises OpenAI SDK errors.
        """
        t0 = _now()
        resp = await self._client.chat.completions.create(
            model=self.config.model,
            messages=messages,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
            timeout=self.config.timeout_s,
        )
        dt = _now() - t0
        # Best-effort usage logging
        u = getattr(resp, "usage", None)
        logger.info(
            f"LLM call model={getattr(resp, 'model', self.config.model)} duration={dt:.3f}s "
            f"tokens(prompt={getattr(u, 'prompt_tokens', None)}, "
            f"completion={getattr(u, 'completion_tokens', None)}, "
            f"total={getattr(u, 'total_tokens', None)})"
        )
        return resp.choices[0].message.content or ""

    async def _attempt(self, messages: List[dict], candidate_ids: set) -> Tuple[RecoOutcome, bool]:
        """
        One call + parse + validate.
        Returns (outcome, retryable).
        """
        try:
            content = await self._call_llm(messages)
        except openai.APIError as e:
            kind = classify_error(e)
            return RecoFailure(kind=kind, message=str(e)), kind not in NON_RETRYABLE_KINDS

        raw = _strip_fences(content)
        logger.debug(f"LLM raw response after fence stripping: {raw[:500]}")
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as e:
            return RecoFailure(kind=RecoErrorKind.RESPONSE_ERROR, message=f"Invalid LLM JSON: {e}"), True

        try:
            items = validate_recommendations(parsed, candidate_ids)
        except MalformedResponse as e:
            return RecoFailure(kind=RecoErrorKind.RESPONSE_ERROR, message=f"Invalid LLM response: {e}"), False

        return RecoSuccess(items=items), False

    async def _call_with_retry(self, messages: List[dict], candidate_ids: set) -> RecoOutcome:
        max_retries = self.config.max_retries
        for attempt in range(max_retries + 1):
            outcome, retryable = await self._attempt(messages, candidate_ids)
            if isinstance(outcome, RecoSuccess) or not retryable or attempt == max_retries:
                return outcome

            delay = self.config.backoff_delay(attempt)
            logger.warning(
                f"LLM retry {attempt + 1}/{max_retries} in {delay:.1f}s "
                f"kind={outcome.kind.value}: {outcome.message}"
            )
            await self._sleep(delay)

        raise RuntimeError("Unexpected fall-through in _call_with_retry")
