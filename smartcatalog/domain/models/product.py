from pydantic import BaseModel, Field
from typing import Any, Dict, Optional
from datetime import datetime

class Product(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: float = Field(ge=0)
    category: str
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    attributes: Dict[str, Any] = Field(default_factory=dict)  # open map: brand, color, material...
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    # snake_case in Mongo, camelCase on the wire
    model_config = {"frozen": True, "populate_by_name": True}

    @property
    def brand(self) -> Optional[str]:
        b = self.attributes.get("brand")
        return str(b) if b is not None else None

class EnrichedResult(Product):
    """A catalog product carrying the model's explanation and score."""
    ai_explanation: str = Field(alias="aiExplanation")
    ai_relevance_score: int = Field(alias="aiRelevanceScore")
