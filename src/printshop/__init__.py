"""printshop - pricing, cart and order core for a print-shop storefront."""

__version__ = "0.1.0"
