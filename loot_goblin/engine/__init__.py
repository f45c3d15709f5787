"""
Loot Goblin Adventure Engine
Core simulation without web framework, database, or UI
"""

# Snapshot layout version written by Adventure.to_dict()
SNAPSHOT_VERSION = 1

MAX_GOBLINS = 4
STARTING_HEALTH = 2
# Starting greed is STARTING_GREED_BASE - ordinal in turn order
STARTING_GREED_BASE = 4

ACTIONS_PER_SCENARIO = 2
OUTCOMES_PER_ACTION = 14
