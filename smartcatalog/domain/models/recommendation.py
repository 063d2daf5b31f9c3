from enum import Enum
from typing import List, Union
from pydantic import BaseModel, Field

from smartcatalog.domain.services.constants import MAX_RELEVANCE_SCORE, MIN_RELEVANCE_SCORE


class Recommendation(BaseModel):
    product_id: int
    explanation: str
    relevance_score: int = Field(ge=MIN_RELEVANCE_SCORE, le=MAX_RELEVANCE_SCORE)
    model_config = {"frozen": True}


class RecoErrorKind(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"        # bad input
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"  # missing / invalid credentials
    RATE_LIMIT_ERROR = "RATE_LIMIT_ERROR"
    QUOTA_ERROR = "QUOTA_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    RESPONSE_ERROR = "RESPONSE_ERROR"            # malformed model output
    API_ERROR = "API_ERROR"                      # catch-all


# Kinds that fail immediately instead of going through backoff
NON_RETRYABLE_KINDS = frozenset({
    RecoErrorKind.VALIDATION_ERROR,
    RecoErrorKind.CONFIGURATION_ERROR,
    RecoErrorKind.QUOTA_ERROR,
})


class RecoSuccess(BaseModel):
    items: List[Recommendation] = Field(default_factory=list)
    model_config = {"frozen": True}


class RecoFailure(BaseModel):
    kind: RecoErrorKind
    message: str
    model_config = {"frozen": True}


RecoOutcome = Union[RecoSuccess, RecoFailure]
