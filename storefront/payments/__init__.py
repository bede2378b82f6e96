"""
Module 'payments' (feature-first): point d'entrée public.
Réunit construction des line_items, metadata Stripe, client Stripe et services.
"""

from .line_items import to_minor_units, to_line_items, make_metadata
from .metadata import extract_metadata_from_session, extract_session_from_event
from .stripe_client import require_stripe, create_session, get_session, parse_event

__all__ = [
    # line items
    "to_minor_units",
    "to_line_items",
    "make_metadata",
    # metadata
    "extract_metadata_from_session",
    "extract_session_from_event",
    # stripe
    "require_stripe",
    "create_session",
    "get_session",
    "parse_event",
]
