"""
VAT Pricing Package

Computes exclusive and inclusive prices from a base unit price, a units
count, an optional VAT rate and ordered tax/discount modifiers, keeping a
ledger of every adjustment.
"""

__version__ = "1.0.0"
