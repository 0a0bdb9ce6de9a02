"""
Retail Pricing Package

Deterministic retail price and margin calculation for distributor catalogs.
Resolves one price per product from vendor cost/MSRP/MAP using a tenant's
pricing strategy, fallback strategy, rounding rule and cross-vendor fallback.
"""

__version__ = "1.0.0"
