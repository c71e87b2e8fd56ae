import os
import sys

from dotenv import load_dotenv

from enums.runtime_environment import RuntimeEnvironment

# Load .env but don't override existing environment variables
# This allows test scripts to set RUNTIME_ENVIRONMENT=TEST before import
load_dotenv(".env", override=False)

# Parse RUNTIME_ENVIRONMENT with clear error message on misconfiguration
try:
    _runtime_env_str = os.environ.get("RUNTIME_ENVIRONMENT")
    if not _runtime_env_str:
        raise ValueError("RUNTIME_ENVIRONMENT environment variable is not set")
    RUNTIME_ENVIRONMENT = RuntimeEnvironment(_runtime_env_str)
except ValueError as e:
    valid_values = [env.value for env in RuntimeEnvironment]
    print(f"\n ERROR: Invalid RUNTIME_ENVIRONMENT configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Valid values: {', '.join(valid_values)}", file=sys.stderr)
    print(f"Current value: {os.environ.get('RUNTIME_ENVIRONMENT', '(not set)')}", file=sys.stderr)
    print(f"\nAdd to .env: RUNTIME_ENVIRONMENT={valid_values[0]}\n", file=sys.stderr)
    sys.exit(1)

# Database
# Async driver URL; tests and scripts may pass their own engine instead
DB_URL = os.environ.get("DB_URL", "sqlite+aiosqlite:///data/shake.db")

# Promo validation
# "local"  - client-side mirror (services/promo.py), advisory only
# "server" - authoritative validate_apply_promo procedure over HTTP
try:
    PROMO_VALIDATION_MODE = os.environ.get("PROMO_VALIDATION_MODE", "local").strip().lower()
    if PROMO_VALIDATION_MODE not in ("local", "server"):
        raise ValueError(f"PROMO_VALIDATION_MODE must be 'local' or 'server' (got: {PROMO_VALIDATION_MODE})")
    PROMO_RPC_URL = os.environ.get("PROMO_RPC_URL", "")
    if PROMO_VALIDATION_MODE == "server" and not PROMO_RPC_URL:
        raise ValueError("PROMO_VALIDATION_MODE=server but PROMO_RPC_URL is empty")
    PROMO_RPC_TIMEOUT_SECONDS = float(os.environ.get("PROMO_RPC_TIMEOUT_SECONDS", "10"))
    if PROMO_RPC_TIMEOUT_SECONDS <= 0:
        raise ValueError(f"PROMO_RPC_TIMEOUT_SECONDS must be positive (got: {PROMO_RPC_TIMEOUT_SECONDS})")
except ValueError as e:
    print(f"\n ERROR: Invalid promo validation configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Example: PROMO_VALIDATION_MODE=server", file=sys.stderr)
    print(f"         PROMO_RPC_URL=https://<project>.supabase.co/rest/v1/rpc/validate_apply_promo\n", file=sys.stderr)
    sys.exit(1)

PROMO_RPC_API_KEY = os.environ.get("PROMO_RPC_API_KEY", "")

# Display
CURRENCY_SYMBOL = os.environ.get("CURRENCY_SYMBOL", "₱")

# Logging Configuration
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")  # DEBUG, INFO, WARNING, ERROR, CRITICAL
LOG_MASK_SECRETS = os.environ.get("LOG_MASK_SECRETS", "true") == "true"  # Mask sensitive data in logs

# Log Retention: Environment-specific defaults
# Dev: keep a month for debugging
# Prod: Use 5 days default to save disk space
if RUNTIME_ENVIRONMENT == RuntimeEnvironment.DEV:
    LOG_RETENTION_DAYS = int(os.environ.get("LOG_RETENTION_DAYS", "30"))
else:
    LOG_RETENTION_DAYS = int(os.environ.get("LOG_RETENTION_DAYS", "5"))
