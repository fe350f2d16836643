"""Internal constants shared across the library."""

USER_AGENT = "pysaga/0.1 (+aiohttp)"

# ------------------------------------------------------------------
# Upstream endpoints
# ------------------------------------------------------------------

OPENSKY_STATES_URL = "https://opensky-network.org/api/states/all"
OPENSKY_TOKEN_URL = "https://auth.opensky-network.org/auth/realms/opensky-network/protocol/openid-connect/token"

BARENTSWATCH_AIS_URL = "https://live.ais.barentswatch.no/v1/latest/combined"
BARENTSWATCH_TOKEN_URL = "https://id.barentswatch.no/connect/token"
BARENTSWATCH_SCOPE = "ais"

# ------------------------------------------------------------------
# Coverage area (Norway): south, west, north, east in degrees
# ------------------------------------------------------------------

DEFAULT_BBOX: tuple[float, float, float, float] = (57.9, 4.5, 71.2, 31.0)

# Records with both |lat| and |lon| below this are treated as "no fix".
NULL_ISLAND_EPSILON = 0.1

UNKNOWN_CALLSIGN = "UNKNOWN"
UNKNOWN_COUNTRY = "Unknown"

# ------------------------------------------------------------------
# Token lifecycle
# ------------------------------------------------------------------

DEFAULT_REFRESH_MARGIN_S = 5 * 60
DEFAULT_TOKEN_EXPIRES_IN_S = 3600

# ------------------------------------------------------------------
# Interpolation (planar metres, EPSG:3857)
# ------------------------------------------------------------------

DEFAULT_LERP_FACTOR = 0.05
DEFAULT_CONVERGED_EPSILON = 1.0
