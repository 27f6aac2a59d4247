"""
Game constants: resource definitions, costs, unlock gates, tick and storage settings.
"""

TICK_SECONDS = 1.0

DB_PATH = "gameDB.json"
STATE_KEY = "cividler"

LOG_LEVEL = "WARNING"

SCHEMA_NAME = "cividler.state"
SCHEMA_VERSION = 1

# Villagers produced per villager period by each owned producer
CAMP_PRODUCTION_RATE = 1
TOWN_PRODUCTION_RATE = 2

CAMP_COST = 50
TOWN_COST = 125

# Camps required before the first town can be bought
TOWN_CAMP_REQUIREMENT = 500

# Resource definitions. Only count, rate, last_updated and the unlock flag
# are persisted; everything here is static game data.
RESOURCES = {
    "villager": {
        "description": "Villagers help your civilization to grow.",
        "cost": 0,
        "cost_resource": None,
        "rate": 1.0,
        "starting_count": 0,
        "yield": 0,
        "produces": {},
        "unlock": None,
    },
    "camp": {
        "description": "Camps produce villagers and allow your civilization to grow.",
        "cost": CAMP_COST,
        "cost_resource": "villager",
        "rate": 0.0,
        "starting_count": 1,
        "yield": 0,
        "produces": {"villager": CAMP_PRODUCTION_RATE},
        "unlock": None,
    },
    "town": {
        "description": "Towns are an advanced way to grow your civilization and produce more villagers.",
        "cost": TOWN_COST,
        "cost_resource": "villager",
        "rate": 0.0,
        "starting_count": 0,
        "yield": 0,
        "produces": {"villager": TOWN_PRODUCTION_RATE},
        "unlock": ("camp", TOWN_CAMP_REQUIREMENT),
    },
}

# Resource whose per-second rate is shown in the status line
PRIMARY_RESOURCE = "villager"

UNLOCK_MESSAGES = {
    "town": (
        "Your villagers have found clay, and can build bricks with which to "
        "create a town. Towns are now available for purchase"
    ),
}

# Short purchase commands: "bc 10" buys camps, "bt all" buys towns
BUY_SHORTCUTS = {
    "bc": "camp",
    "bt": "town",
}
