# module storefront.orders.models
"""Statuts de commande et schéma d'adresse de livraison (paiement à la livraison)."""
from pydantic import BaseModel, Field

class OrderStatus:
    PROCESSING = "PROCESSING"
    SHIPPING = "SHIPPING"
    SHIPPED = "SHIPPED"

    # Ordre de progression: une commande n'avance que vers l'avant
    FLOW = (PROCESSING, SHIPPING, SHIPPED)

class PaymentStatus:
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"

    ALL = (PENDING, PAID, FAILED)

class PaymentMethod:
    STRIPE = "STRIPE"
    CASH_ON_DELIVERY = "CASH_ON_DELIVERY"

class ShippingAddress(BaseModel):
    full_name: str = Field(min_length=2)
    address_line1: str = Field(min_length=5)
    address_line2: str = ""
    city: str = Field(min_length=2)
    state: str = Field(min_length=2)
    zip_code: str = Field(min_length=5)
    country: str = Field(min_length=2)
