"""
Tola Pricing.

Dynamic gold and silver pricing for tola-weighted jewellery.
"""

__version__ = "1.0.0"
