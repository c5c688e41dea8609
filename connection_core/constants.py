"""
Application-level constants for hardcoded query-engine behavior.

These values define the wire contract and safety limits of the connection
engine and should NEVER be changed via environment variables. For
configurable values (connection pools, default page size, cursor strategy),
see connection_core/settings.py.
"""

# ============================================================================
# Pagination Safety Limits
# ============================================================================

# Maximum page size honored for `first`/`last`. Larger requests are clamped,
# never rejected. For the default page size, see settings.DEFAULT_PAGE_SIZE
MAX_PAGE_SIZE = 100


# ============================================================================
# Cursor Format
# ============================================================================

# Version tag embedded in keyset cursors. Bump when the payload layout changes
# so that cursors minted by older deployments are rejected as invalid.
KEYSET_CURSOR_VERSION = 1

# Length of the hex digest binding a keyset cursor to its sort+filter context
CURSOR_SIGNATURE_LENGTH = 16


# ============================================================================
# Default Entity Conventions
# ============================================================================

# Column that carries the tenant id on every tenant-owned table
DEFAULT_TENANT_FIELD = "business_id"

# Unique, non-null column used as the implicit trailing sort tiebreaker
DEFAULT_PRIMARY_KEY = "id"
