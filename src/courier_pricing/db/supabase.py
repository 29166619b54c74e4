"""Supabase client shared by the pricing configuration store.

The service reads the ``delivery_zones``, ``order_type_adjustments`` and
``promotions`` tables, counts a customer's ``orders`` for first-order
promotions and calls the ``increment_promo_usage`` function.
"""

import logging
from functools import lru_cache
from supabase import create_client, Client
from ..config import settings

logger = logging.getLogger(__name__)


@lru_cache()
def get_supabase_client() -> Client | None:
    """Client built from CP_SUPABASE_URL and CP_SUPABASE_KEY, created once per process.

    Returns None when either credential is missing or the client cannot be
    built; SupabasePricingStore then reports the store as not configured and
    quotes answer 503 until a refresh succeeds. Creating the client opens no
    connection, so an unreachable project only surfaces on the first load.
    """
    if not settings.supabase_url or not settings.supabase_key:
        logger.warning("Supabase credentials not configured (missing URL or key)")
        return None

    try:
        return create_client(settings.supabase_url, settings.supabase_key)
    except Exception as e:
        logger.error(f"Failed to create Supabase client: {e}")
        return None
