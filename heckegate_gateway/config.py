"""
Configuration module for the HeckeGate gateway.

All settings come from environment variables, read once at import.
"""

import json
import os
from pathlib import Path
from typing import Dict

from heckegate import SignatureCatalog, create_default_catalog

# ============================================================
# Environment Configuration
# ============================================================

ENV = os.getenv("HECKE_ENV", "dev")  # dev|stage|prod

# Logging
LOG_LEVEL = os.getenv("HECKE_LOG_LEVEL", "INFO")
LOG_JSON = os.getenv("HECKE_LOG_JSON", "true").lower() in ("1", "true", "yes")
LOG_FILE = os.getenv("HECKE_LOG_FILE", "")

# Catalog (empty: built-in default catalog)
CATALOG_PATH = os.getenv("HECKE_CATALOG_PATH", "")

# Proof signing (empty: proofs are unsigned)
SIGNING_KEY_PATH = os.getenv("HECKE_SIGNING_KEY_PATH", "")
KEY_ID = os.getenv("HECKE_KEY_ID", "")  # empty: key id from the key file

# Webhook delivery
WEBHOOK_TIMEOUT = float(os.getenv("HECKE_WEBHOOK_TIMEOUT", "2.0"))
WEBHOOK_ENABLED = os.getenv("HECKE_WEBHOOK_ENABLED", "true").lower() in ("1", "true", "yes")


# ============================================================
# Loaders
# ============================================================

def load_catalog() -> SignatureCatalog:
    """
    Load the signature catalog once at startup.

    Raises CatalogMisconfiguration on an invalid catalog file; the gateway
    refuses to start rather than serve with a broken catalog.
    """
    if not CATALOG_PATH:
        return create_default_catalog()

    with open(CATALOG_PATH, "r", encoding="utf-8") as f:
        return SignatureCatalog.from_dict(json.load(f))


# ============================================================
# Validation
# ============================================================

def validate_config() -> Dict[str, bool]:
    """
    Check that configured files exist.
    Returns dict of name -> exists; unset paths are not listed.
    """
    paths = {
        "catalog": CATALOG_PATH,
        "signing_key": SIGNING_KEY_PATH,
    }
    return {name: Path(path).exists() for name, path in paths.items() if path}


# ============================================================
# Feature Flags
# ============================================================

def is_production() -> bool:
    return ENV == "prod"


def is_debug() -> bool:
    return os.getenv("HECKE_DEBUG", "").lower() in ("1", "true", "yes")
