"""Hardcoded progression rules.

These values are used whenever the database has no override for a
category, and wholesale whenever the override source is unavailable.
Keys use the same camelCase shape as the stored ``coreRules`` document so a
category can be replaced by its database counterpart without translation.
"""

from __future__ import annotations

from typing import Any


# =============================================================================
# Progression
# =============================================================================

PROGRESSION_PLAYER: dict[str, Any] = {
    "baseAbilityPoints": 7,
    "abilityPointsEveryNLevels": 3,
    "abilityPointsPerIncrease": 1,
    "skillPointsPerLevel": 3,
    "baseHitEnergyPool": 18,
    "hitEnergyPerLevel": 12,
    "baseProficiency": 2,
    "proficiencyEveryNLevels": 5,
    "proficiencyPerIncrease": 1,
    "baseTrainingPoints": 22,
    "tpPerLevelMultiplier": 2,
    "baseHealth": 8,
    "startingCurrency": 200,
    "characterFeatsPerLevel": 1,
}

PROGRESSION_CREATURE: dict[str, Any] = {
    "baseAbilityPoints": 7,
    "abilityPointsEveryNLevels": 3,
    "abilityPointsPerIncrease": 1,
    "skillPointsAtLevel1": 5,
    "skillPointsPerLevel": 3,
    "baseHitEnergyPool": 26,
    "hitEnergyPerLevel": 12,
    "baseProficiency": 2,
    "proficiencyEveryNLevels": 5,
    "proficiencyPerIncrease": 1,
    "baseTrainingPoints": 9,
    "tpPerLevelMultiplier": 1,
    "subLevelTrainingPoints": 22,
    "baseFeatPoints": 1.5,
    "featPointsPerLevel": 1,
    "baseCurrency": 200,
    "currencyGrowthRate": 1.45,
}

# =============================================================================
# Abilities, Skills and Defenses
# =============================================================================

ABILITY_RULES: dict[str, Any] = {
    "min": -2,
    "maxStarting": 3,
    "maxAbsoluteCharacter": 6,
    "maxAbsoluteCreature": 20,
    "costIncreaseThreshold": 3,
    "normalCost": 1,
    "increasedCost": 2,
    "maxTotalNegative": -3,
    "standardArrays": {
        "basic": [3, 2, 2, 1, 0, -1],
        "skewed": [3, 3, 2, 2, -1, -2],
        "even": [2, 2, 1, 1, 1, 0],
    },
    "abilities": ["strength", "vitality", "agility", "acuity", "intelligence", "charisma"],
    "defenses": ["might", "fortitude", "reflexes", "discernment", "mentalFortitude", "resolve"],
    "abilityDefenseMap": {
        "strength": "might",
        "vitality": "fortitude",
        "agility": "reflexes",
        "acuity": "discernment",
        "intelligence": "mentalFortitude",
        "charisma": "resolve",
    },
}

SKILLS_AND_DEFENSES: dict[str, Any] = {
    "maxSkillValue": 3,
    "gainProficiencyCost": 1,
    "skillValueCost": 1,
    "defenseIncreaseCost": 2,
    "defenseMax": 3,
    "defenseAbilityCeiling": 0,
    "speciesSkillCount": 2,
}

# =============================================================================
# Archetypes and Armaments
# =============================================================================

ARCHETYPES: dict[str, Any] = {
    "types": ["power", "powered-martial", "martial"],
    "configs": {
        "power": {
            "featLimit": 1,
            "armamentMax": 4,
            "innateEnergy": 8,
            "proficiency": {"martial": 0, "power": 2},
            "trainingPointBonus": 0,
        },
        "powered-martial": {
            "featLimit": 2,
            "armamentMax": 8,
            "innateEnergy": 6,
            "proficiency": {"martial": 1, "power": 1},
            "trainingPointBonus": 0,
        },
        "martial": {
            "featLimit": 3,
            "armamentMax": 16,
            "innateEnergy": 0,
            "proficiency": {"martial": 2, "power": 0},
            "trainingPointBonus": 0,
        },
    },
    "martialBonusFeatsBase": 2,
    "martialBonusFeatsInterval": 3,
    "martialBonusFeatsStartLevel": 4,
    "proficiencyIncreaseInterval": 5,
}

ARMAMENT_PROFICIENCY: dict[str, Any] = {
    "table": [
        {"martialProf": 0, "armamentMax": 3},
        {"martialProf": 1, "armamentMax": 8},
        {"martialProf": 2, "armamentMax": 12},
        {"martialProf": 3, "armamentMax": 15},
        {"martialProf": 4, "armamentMax": 18},
        {"martialProf": 5, "armamentMax": 21},
        {"martialProf": 6, "armamentMax": 24},
    ],
}

RARITIES: dict[str, Any] = {
    "currencyScalePerPoint": 0.125,
    "tiers": [
        {"name": "Common", "currencyLow": 25, "ipLow": 0, "ipHigh": 4},
        {"name": "Uncommon", "currencyLow": 100, "ipLow": 4.01, "ipHigh": 6},
        {"name": "Rare", "currencyLow": 500, "ipLow": 6.01, "ipHigh": 8},
        {"name": "Epic", "currencyLow": 2500, "ipLow": 8.01, "ipHigh": 11},
        {"name": "Legendary", "currencyLow": 10000, "ipLow": 11.01, "ipHigh": 14},
        {"name": "Mythic", "currencyLow": 50000, "ipLow": 14.01, "ipHigh": 16},
        {"name": "Ascended", "currencyLow": 100000, "ipLow": 16.01, "ipHigh": None},
    ],
}

EXPERIENCE: dict[str, Any] = {
    "xpPerLevel": 4,
    "maxLevel": 20,
    "combatXp": "Sum of defeated enemy levels * 2",
    "divideXp": "Split evenly among participating Characters",
}

# =============================================================================
# Descriptive Categories
# =============================================================================

COMBAT: dict[str, Any] = {
    "baseSpeed": 6,
    "baseEvasion": 10,
    "baseDefense": 10,
    "apPerRound": 4,
    "actionCosts": {
        "basic": 2,
        "quick": 1,
        "free": 0,
        "movement": 1,
        "interaction": 1,
        "abilityRoll": 1,
        "evade": 1,
        "brace": 1,
        "focus": 1,
        "search": 1,
        "overcome": 1,
    },
    "multipleActionPenalty": -5,
    "criticalHitThreshold": 10,
    "natural20Bonus": 2,
    "natural1Penalty": -2,
}

_LEVELED_CONDITIONS = (
    "Bleeding", "Exhausted", "Exposed", "Frightened", "Resilient",
    "Slowed", "Stunned", "Susceptible", "Weakened",
)

CONDITIONS: dict[str, Any] = {
    "standard": [
        {"name": name, "leveled": False}
        for name in (
            "Blinded", "Charmed", "Restrained", "Dazed", "Deafened", "Dying",
            "Faint", "Grappled", "Hidden", "Immobile", "Invisible", "Prone",
            "Terminal",
        )
    ],
    "leveled": [{"name": name, "leveled": True} for name in _LEVELED_CONDITIONS],
    "stackingRules": "Conditions don't stack. Stronger replaces weaker.",
}

SIZES: dict[str, Any] = {
    "categories": [
        {"value": "tiny", "label": "Tiny", "modifier": -2},
        {"value": "small", "label": "Small", "modifier": -1},
        {"value": "medium", "label": "Medium", "modifier": 0},
        {"value": "large", "label": "Large", "modifier": 1},
        {"value": "huge", "label": "Huge", "modifier": 2},
        {"value": "gargantuan", "label": "Gargantuan", "modifier": 3},
    ],
}

DAMAGE_TYPES: dict[str, Any] = {
    "all": [
        "physical", "slashing", "piercing", "bludgeoning", "magic", "fire",
        "cold", "lightning", "acid", "poison", "necrotic", "radiant",
        "psychic", "sonic",
    ],
    "armorExceptions": ["psychic", "spiritual", "sonic"],
}

RECOVERY: dict[str, Any] = {
    "partial": {
        "duration": "2, 4, or 6 hours",
        "effect": "Each 2 hours: regain 1/4 of both max Energy and Health, or 1/2 of one.",
    },
    "full": {
        "duration": "8-10 hours",
        "effect": "Fully restore Energy and Health, remove most temporary effects.",
    },
}


FALLBACK_RULES: dict[str, dict[str, Any]] = {
    "PROGRESSION_PLAYER": PROGRESSION_PLAYER,
    "PROGRESSION_CREATURE": PROGRESSION_CREATURE,
    "ABILITY_RULES": ABILITY_RULES,
    "ARCHETYPES": ARCHETYPES,
    "ARMAMENT_PROFICIENCY": ARMAMENT_PROFICIENCY,
    "COMBAT": COMBAT,
    "SKILLS_AND_DEFENSES": SKILLS_AND_DEFENSES,
    "CONDITIONS": CONDITIONS,
    "SIZES": SIZES,
    "RARITIES": RARITIES,
    "DAMAGE_TYPES": DAMAGE_TYPES,
    "RECOVERY": RECOVERY,
    "EXPERIENCE": EXPERIENCE,
}


__all__ = ["FALLBACK_RULES"]
