"""
Constants and environment settings for the Leap calculators site.

All monetary values in USD. Tax tables are simplified effective-rate
approximations for a single filer (2024/25), not a full bracket walk.
"""

import os

# ── Federal income tax (effective-rate step table) ───────────────────
# Bands: (inclusive upper limit, rate). Last band has no upper limit (use inf).
FEDERAL_BRACKETS = [
    (11_000, 0.10),
    (44_725, 0.12),
    (95_350, 0.22),
    (182_050, 0.24),
    (231_250, 0.32),
    (578_125, 0.35),
    (float("inf"), 0.37),
]

# ── State income tax (flat approximation) ────────────────────────────
STATE_RATES = {
    "CA": 0.09,     # progressive in reality, conservative estimate
    "NY": 0.06,
    "TX": 0.00,     # no state income tax
    "WA": 0.00,     # no state income tax
    "MA": 0.05,
    "IL": 0.0495,
}
DEFAULT_STATE_RATE = 0.04

# ── FICA ─────────────────────────────────────────────────────────────
SOCIAL_SECURITY_RATE = 0.062
MEDICARE_RATE = 0.0145
FICA_RATE = SOCIAL_SECURITY_RATE + MEDICARE_RATE

# Reverse solve (take-home -> gross)
SOLVE_MAX_ITER = 50
SOLVE_TOLERANCE = 1.0

# ── Rent tool ────────────────────────────────────────────────────────
RENT_LOW_PCT = 0.28
RENT_HIGH_PCT = 0.35
RENT_ROUND_TO = 25

BUDGET_NEEDS_PCT = 0.50
BUDGET_WANTS_PCT = 0.30
BUDGET_ROUND_TO = 10

# Upfront cash before the first paycheck
PAYCHECK_GAP_DAYS = 14
GAP_LIVING_PCT = 0.35          # share of take-home spent per month while waiting
MOVING_SETUP_COST = 600
UPFRONT_ROUND_TO = 100

# Overspend avoided by staying in range (35% -> 40% of take-home)
RENT_OVERSPEND_PCT = 0.05

# ── Net worth impact ─────────────────────────────────────────────────
IMPACT_HORIZONS = (1, 10, 30)
REAL_RETURN_DEFAULT = 0.07
DEBT_APR_DEFAULT = 0.18
USE_CASES = ("investing", "cash", "debt")

# ── Leap impact (401k) ───────────────────────────────────────────────
K401_EMPLOYEE_CAP = 23_500     # IRS employee deferral limit (2025)
DEFAULT_MATCH_PCT = 5
DEFAULT_MATCH_RATE_PCT = 100   # 100 = dollar-for-dollar
DEFAULT_CURRENT_401K_PCT = 5
FALLBACK_TARGET_PCT = 15       # used when salary is unknown
TRAJECTORY_YEARS = 30
DELAY_MONTHS = 12
HSA_LIMIT_SINGLE = 4_300

# ── Market rent tiers ────────────────────────────────────────────────
# (min median rent, tier, buffer pct, half-width pct), checked top-down.
MARKET_TIERS = [
    (3_000, "T1", 0.08, 0.06),
    (2_200, "T2", 0.06, 0.07),
    (1_500, "T3", 0.04, 0.08),
    (0, "T4", 0.02, 0.10),
]
MARKET_ROUND_TO = 25

# HUD fair market rent, 1-bedroom (2024/25)
HUD_RENTS = {
    "Austin, TX": (1_300, 1_500),
    "New York, NY": (1_800, 2_200),
    "San Francisco Bay Area, CA": (2_200, 2_600),
    "Seattle, WA": (1_700, 2_000),
    "Boston, MA": (1_900, 2_200),
    "Chicago, IL": (1_200, 1_500),
}
HUD_CITY_KEYS = {
    "Austin": "Austin, TX",
    "NYC": "New York, NY",
    "SF Bay Area": "San Francisco Bay Area, CA",
    "Seattle": "Seattle, WA",
    "Boston": "Boston, MA",
    "Chicago": "Chicago, IL",
}

OTHER_METRO_VALUE = "__OTHER__"
OTHER_METRO_LABEL = "Outside major metros / Not sure"

DATA_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data")
ZORI_CSV_PATH = os.path.join(DATA_DIR, "zori_metro.csv")

# ── Outbound integrations ────────────────────────────────────────────
WEBHOOK_TIMEOUT = 5.0          # seconds, single attempt
TAX_API_TIMEOUT = 10.0
TAX_API_URL = "https://api.api-ninjas.com/v1/incometaxcalculator"
ANALYTICS_TIMEOUT = 3.0
GA_COLLECT_URL = "https://www.google-analytics.com/mp/collect"
NEWSLETTER_SIGNUP_TYPE = "newsletter"
NEWSLETTER_PAGE = "resources"

# ── Session keys ─────────────────────────────────────────────────────
LEAP_VARIANT_KEY = "leap_impact_ab_variant"
CONSENT_KEY = "cookie_consent"


def _flag(value):
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def load_settings(environ=None):
    """Read integration switches from the environment.

    Missing values stay ``None`` so callers can branch on presence
    (redirect vs log-only) without touching any calculator.
    """
    env = os.environ if environ is None else environ
    return {
        "GOOGLE_SCRIPT_URL": env.get("GOOGLE_SCRIPT_URL") or None,
        "SUBSTACK_PUBLICATION_URL": (env.get("SUBSTACK_PUBLICATION_URL") or "").rstrip("/") or None,
        "API_NINJAS_KEY": env.get("API_NINJAS_KEY") or None,
        "GA_MEASUREMENT_ID": env.get("GA_MEASUREMENT_ID") or None,
        "GA_API_SECRET": env.get("GA_API_SECRET") or None,
        "DEBUG_ANALYTICS": _flag(env.get("DEBUG_ANALYTICS", "false")),
        "SECRET_KEY": env.get("SECRET_KEY", "dev-only-secret"),
        "APP_ENV": env.get("APP_ENV", "development"),
        "ZORI_CSV_PATH": env.get("ZORI_CSV_PATH", ZORI_CSV_PATH),
    }
