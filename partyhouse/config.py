# partyhouse/config.py
import os

# Time structure
MAX_ROUNDS = 25

# House
CAPACITY_START = 5
CAPACITY_MAX = 35

# Upgrade cost ramps by 1 per upgrade from the base, then flattens at the cap
UPGRADE_COST_BASE = 2
UPGRADE_COST_CAP = 12

# Thresholds
TROUBLE_LIMIT = 3            # aggregate trouble that ends the party
STAR_GOAL = 4                # aggregate stars that win the game
WHITE_FLAG_MITIGATION = 1    # does not stack across holders

# End-of-party scaling
COMEDIAN_BONUS = 5           # per comedian, only when the house is full

# Shop
SHOP_SIZE = 10
SHOP_STAR_SLOTS = 2
PURCHASE_LIMIT = 4           # per non-star type; star types are uncapped

# Starting invite pool (type key -> copies). Never offered in the shop.
STARTING_GUESTS = {
    "basic": 4,
    "rich": 3,
    "troublemaker": 3,
}

# Ability policy
KICK_ONCE_PER_INSTANCE = False

# Files
_PKG_ROOT = os.path.abspath(os.path.dirname(__file__))
GUESTS_PATH = os.path.join(_PKG_ROOT, "data", "guests.json")
STREAK_PATH = os.environ.get(
    "PARTYHOUSE_STREAK_PATH",
    os.path.join(os.path.expanduser("~"), ".partyhouse_streak.json"),
)

# Web server
HOST = os.environ.get("PARTYHOUSE_HOST", "127.0.0.1")
PORT = int(os.environ.get("PARTYHOUSE_PORT", "8000"))
