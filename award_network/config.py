"""
Award Network Engine: Configuration

Single source of truth for all thresholds, caps, and defaults.
Used by: graph builder, filters, clustering, distribution, exports.

Version: 1.0.0
"""

# =============================================================================
# Relationship Strength Score (0-100)
# =============================================================================
# Heuristic, not statistically calibrated. Each factor is capped on its own
# so that no single factor dominates; the sum is capped at STRENGTH_MAX.
#
# valueScore = min(totalValue / STRENGTH_VALUE_DIVISOR, STRENGTH_VALUE_CAP)
# countScore = min(activeAwards * STRENGTH_COUNT_WEIGHT, STRENGTH_COUNT_CAP)
# sizeScore  = min(avgAwardSize / STRENGTH_SIZE_DIVISOR, STRENGTH_SIZE_CAP)
STRENGTH_VALUE_DIVISOR = 1_000_000   # $1M contributes 1 point
STRENGTH_VALUE_CAP = 100
STRENGTH_COUNT_WEIGHT = 10           # 5 awards reach the cap
STRENGTH_COUNT_CAP = 50
STRENGTH_SIZE_DIVISOR = 100_000      # $100K average contributes 1 point
STRENGTH_SIZE_CAP = 25
STRENGTH_MAX = 100

# =============================================================================
# Filter Defaults
# =============================================================================
DEFAULT_FILTER_LOOKBACK_DAYS = 365   # default time window ends at as-of

# =============================================================================
# Network Distribution (active obligations)
# =============================================================================
# Events with no end date count as active when their event date falls
# within this many years before as-of.
DISTRIBUTION_RECENT_YEARS = 2

# =============================================================================
# Geographic Coordinates [lng, lat]
# =============================================================================
# Read-only defaults; callers inject their own table through
# clustering.CoordinateLookup.
DEFAULT_STATE_COORDINATES = {
    "CA": (-119.4179, 36.7783),
    "TX": (-99.9018, 31.9686),
    "NY": (-74.2179, 40.7589),
    "FL": (-81.5158, 27.6648),
}
US_CENTER_COORDINATES = (-98.5795, 39.8283)

# =============================================================================
# Cache Sizes (memoized filter / cluster views)
# =============================================================================
FILTER_CACHE_SIZE = 64
CLUSTER_CACHE_SIZE = 64

# =============================================================================
# App Metadata
# =============================================================================
ENGINE_VERSION = "1.0.0"
ENGINE_NAME = "Award Network Engine"
