"""Runtime settings for printshop, read from the environment."""

import os
from pathlib import Path

# Can be overridden via PRINTSHOP_DATA_DIR environment variable
_default_data_dir = Path(__file__).parent.parent.parent / "data"
DATA_DIR = Path(os.environ.get("PRINTSHOP_DATA_DIR", _default_data_dir))

# Optional catalog file; the packaged seed catalog is used when unset
CATALOG_PATH = os.environ.get("PRINTSHOP_CATALOG") or None

# Simulated payment processing time in seconds
CHECKOUT_DELAY_SECONDS = float(os.environ.get("PRINTSHOP_CHECKOUT_DELAY", "2.0"))

ADMIN_TOKEN = os.environ.get("PRINTSHOP_ADMIN_TOKEN", "admin")

LOG_LEVEL = os.environ.get("PRINTSHOP_LOG_LEVEL", "INFO")

# Storage keys for the persisted documents
CART_KEY = "printshop-cart"
ORDERS_KEY = "printshop-orders"
