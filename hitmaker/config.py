# hitmaker/config.py
#
# Default balance coefficients. balance.py overlays data/balance.json on top of
# these; nothing else should read them directly except as fallbacks.

BALANCE_VERSION = "1.0.0"

# Campaign / time structure
CAMPAIGN_LENGTH_MONTHS = 36
STARTING_MONEY = 75_000
STARTING_REPUTATION = 5.0
STARTING_CREATIVE_CAPITAL = 10.0
STARTING_FOCUS_SLOTS = 3
MAX_FOCUS_SLOTS = 4
FOURTH_FOCUS_SLOT_REPUTATION = 50.0

# Bounded attributes
ATTR_MIN = 0.0
ATTR_MAX = 100.0

# Quality
QUALITY_BASE = 50.0
QUALITY_MIN = 20.0
QUALITY_MAX = 100.0
MOOD_QUALITY_WEIGHT = 0.2
SONG_COUNT_QUALITY_DECAY = 0.95     # per extra song in the project
SONG_COUNT_QUALITY_FLOOR = 0.85
SONG_QUALITY_VARIANCE = 3.0         # +/- points per generated song

# Budget quality bonus breakpoints (ratio = budget per song / minimum viable)
BUDGET_BREAKPOINTS = (
    # (ratio, bonus) pairs joined by straight lines
    (0.6, -5.0),
    (1.0, 10.0),
    (2.0, 17.5),
    (3.0, 22.5),
)
BUDGET_DIMINISHING_FACTOR = 2.5     # 22.5 + factor * ln(ratio - 2)
BUDGET_BONUS_CAP = 25.0

# Minimum viable cost per song, keyed by project type
MINIMUM_VIABLE_COST = {
    "single": 2500,
    "ep": 2200,
}

# Allowed song counts per project type (inclusive)
SONG_COUNT_RANGE = {
    "single": (1, 3),
    "ep": (3, 7),
}

# Economies of scale: (minimum song count, multiplier), checked from the top
ECONOMIES_OF_SCALE = (
    (7, 0.80),
    (4, 0.85),
    (2, 0.90),
    (1, 1.00),
)

# Producer tiers: unlock reputation, quality bonus, cost multiplier
PRODUCER_TIERS = {
    "local": {"unlock_reputation": 0, "quality_bonus": 0, "cost_multiplier": 1.0},
    "regional": {"unlock_reputation": 15, "quality_bonus": 5, "cost_multiplier": 1.5},
    "national": {"unlock_reputation": 35, "quality_bonus": 12, "cost_multiplier": 2.5},
    "legendary": {"unlock_reputation": 60, "quality_bonus": 20, "cost_multiplier": 4.0},
}

# Time investment: quality modifier, cost multiplier, minimum production months
TIME_INVESTMENTS = {
    "rushed": {"quality_modifier": -10, "cost_multiplier": 0.7, "min_months": 1},
    "standard": {"quality_modifier": 0, "cost_multiplier": 1.0, "min_months": 2},
    "extended": {"quality_modifier": 8, "cost_multiplier": 1.3, "min_months": 3},
    "perfectionist": {"quality_modifier": 15, "cost_multiplier": 1.6, "min_months": 4},
}

# Songs recorded per production month, keyed by project type
SONGS_PER_MONTH = {
    "single": 1,
    "ep": 2,
}

# Access tiers: name -> reputation threshold (ascending)
PLAYLIST_TIERS = {"none": 0, "niche": 10, "mid": 30, "flagship": 60}
PRESS_TIERS = {"none": 0, "blogs": 8, "mid_tier": 25, "national": 50}

# How far a playlist tier pushes a release
PLAYLIST_REACH = {"none": 0.4, "niche": 0.7, "mid": 1.0, "flagship": 1.5}

# Streaming
STREAMS_PEAK = 400_000              # saturation ceiling at reach 1.0
STREAMS_SATURATION = 60.0           # score at which ~63% of the peak is reached
STREAM_WEIGHT_QUALITY = 0.35
STREAM_WEIGHT_POPULARITY = 0.25
STREAM_WEIGHT_REPUTATION = 0.15
STREAM_WEIGHT_MARKETING = 0.25
MARKETING_DIVISOR = 1000.0          # sqrt(spend / divisor) * scale
MARKETING_SCORE_SCALE = 10.0
RELEASE_VARIANCE = (0.9, 1.1)
LAUNCH_WINDOW_MONTHS = 3
LAUNCH_DECAY = 0.70
CATALOG_DECAY = 0.85
CATALOG_TAIL_FRACTION = 0.02
REVENUE_PER_STREAM = 0.005
MARKETING_BOOST_STREAMS = 2500.0    # per sqrt(spend / divisor)

# Seasons: calendar quarter -> multiplier. Month 1 of the campaign is January.
SEASONAL_REVENUE = {"q1": 0.85, "q2": 0.95, "q3": 1.10, "q4": 1.40}
SEASONAL_MARKETING_COST = {"q1": 0.85, "q2": 0.95, "q3": 1.10, "q4": 1.40}

# Press coverage, rolled once per pickup slot on a full release
PRESS_BASE_CHANCE = 0.15
PRESS_TIER_CHANCE = {"none": 0.05, "blogs": 0.25, "mid_tier": 0.60, "national": 0.85}
PRESS_SPEND_CHANCE = 0.00005        # per marketing dollar
PRESS_REPUTATION_CHANCE = 0.008     # per reputation point
PRESS_MAX_CHANCE = 0.95
PRESS_MAX_PICKUPS = 8
PRESS_REPUTATION_PER_PICKUP = 2.0   # scaled by quality / 100, floored

# Popularity
POPULARITY_BASE_THRESHOLD = 3000.0
POPULARITY_THRESHOLD_DOUBLING = 25.0
POPULARITY_SATURATION_POINT = 35.0
POPULARITY_MAX_GAIN = 10.0
POPULARITY_MIN_GAIN = 0.1

# Mood / loyalty
MOOD_BASELINE = 50.0
MOOD_DRIFT = 3.0
LOYALTY_BASELINE = 50.0
LOYALTY_DRIFT = 2.0
RELEASE_HIT_QUALITY = 75.0
RELEASE_HIT_MOOD = 5.0
RELEASE_FLOP_QUALITY = 45.0
RELEASE_FLOP_MOOD = -3.0
WORKLOAD_MOOD_PENALTY = -5.0

# Archetype coefficients
ARCHETYPES = {
    "Visionary": {"workload_tolerance": 2},
    "Workhorse": {"workload_tolerance": 3},
    "Trendsetter": {"workload_tolerance": 2},
}

# Charts
CHART_SIZE = 100
TOP10_DEBUT_REPUTATION = 2.0
NUMBER_ONE_DEBUT_REPUTATION = 5.0
CHART_COMPETITORS = 98
CHART_COMPETITOR_STREAMS = (450_000, 15_000)   # top and bottom of the field
CHART_COMPETITOR_VARIANCE = (0.8, 1.2)

# Lead singles spend this share of the project marketing budget
LEAD_SINGLE_MARKETING_SHARE = 0.3

# Release reputation
RELEASE_REPUTATION_QUALITY = 70.0   # avg quality above this earns reputation
RELEASE_REPUTATION_GAIN = 2.0

# Monthly costs
MONTHLY_OPERATING_COST = 4000
