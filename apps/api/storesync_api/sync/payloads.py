"""Pydantic models for Shopify Admin REST records.

Only the fields the relational model stores are declared; everything else in
the payload is ignored. The same models parse bulk pages and push bodies.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ShopifyRecord(BaseModel):
    """Fields shared by every Shopify resource."""

    model_config = ConfigDict(extra="ignore")

    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ShopifyCustomer(ShopifyRecord):
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class ShopifyVariant(BaseModel):
    model_config = ConfigDict(extra="ignore")

    price: Optional[Decimal] = None


class ShopifyProduct(ShopifyRecord):
    title: Optional[str] = None
    variants: list[ShopifyVariant] = []

    @property
    def price(self) -> Optional[Decimal]:
        """First variant's price, or None for a product without variants."""
        if not self.variants:
            return None
        return self.variants[0].price


class ShopifyOrder(ShopifyRecord):
    total_price: Optional[Decimal] = None
    # Absent for guest checkouts
    customer: Optional[ShopifyCustomer] = None
