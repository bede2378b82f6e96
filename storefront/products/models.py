# module storefront.products.models
"""Schémas de validation du catalogue (création / mise à jour de produit, remise)."""
from typing import List, Optional
from pydantic import BaseModel, Field

class ProductAttribute(BaseModel):
    key: str
    value: str

class ProductInput(BaseModel):
    name: str = Field(min_length=1)
    description: str = Field(min_length=10, max_length=2000)
    category: str
    images: List[str] = Field(default_factory=list)
    price: float = Field(ge=0)
    stock: int = Field(ge=0)
    ratings: Optional[float] = Field(default=None, ge=0, le=5)
    attributes: List[ProductAttribute] = Field(default_factory=list)

class DiscountInput(BaseModel):
    discount_percentage: float = Field(ge=0, le=100)
