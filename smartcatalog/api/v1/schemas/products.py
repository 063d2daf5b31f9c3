# api/v1/schemas/products.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, Optional


class ProductIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    price: float = Field(ge=0)
    category: str = Field(min_length=1, max_length=100)
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    attributes: Dict[str, Any] = Field(default_factory=dict)


class ProductUpdate(BaseModel):
    """Partial update: only the fields sent are changed."""
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    attributes: Optional[Dict[str, Any]] = None
