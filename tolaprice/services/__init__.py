"""
Services module.

Business logic that combines market rates with the pricing engine.
"""

from tolaprice.services.quote_service import Quote, QuoteService, build_quote

__all__ = ["Quote", "QuoteService", "build_quote"]
