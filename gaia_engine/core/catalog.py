"""Static game tables: factions, tiles, missions, costs.

Everything here is immutable reference data. Session state only ever stores
ids pointing into these tables.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class Planet(StrEnum):
    terra = "terra"
    ice = "ice"
    titanium = "titanium"
    swamp = "swamp"
    desert = "desert"
    volcanic = "volcanic"
    oxide = "oxide"
    gaia = "gaia"
    transdim = "transdim"
    space = "space"


# Terraforming wheel. Steps between two home types = circular distance here.
PLANET_WHEEL: tuple[Planet, ...] = (
    Planet.terra,
    Planet.ice,
    Planet.titanium,
    Planet.swamp,
    Planet.desert,
    Planet.volcanic,
    Planet.oxide,
)


class Structure(StrEnum):
    mine = "mine"
    trading_station = "trading_station"
    research_lab = "research_lab"
    planetary_institute = "planetary_institute"
    academy_left = "academy_left"
    academy_right = "academy_right"


BIG_BUILDINGS: frozenset[Structure] = frozenset(
    {Structure.planetary_institute, Structure.academy_left, Structure.academy_right}
)

# Academies share one limit (left + right).
BUILDING_LIMITS: dict[str, int] = {
    "mine": 8,
    "trading_station": 4,
    "research_lab": 3,
    "planetary_institute": 1,
    "academy": 2,
}


def limit_key(structure: Structure) -> str:
    if structure in (Structure.academy_left, Structure.academy_right):
        return "academy"
    return structure.value


# Upgrade ladder: from -> allowed targets.
UPGRADES: dict[Structure, tuple[Structure, ...]] = {
    Structure.mine: (Structure.trading_station,),
    Structure.trading_station: (Structure.research_lab, Structure.planetary_institute),
    Structure.research_lab: (Structure.academy_left, Structure.academy_right),
}


@dataclass(frozen=True, slots=True)
class Cost:
    ore: int = 0
    credits: int = 0


MINE_COST = Cost(ore=1, credits=2)
UPGRADE_COSTS: dict[Structure, Cost] = {
    Structure.trading_station: Cost(ore=2, credits=6),
    Structure.research_lab: Cost(ore=3, credits=5),
    Structure.planetary_institute: Cost(ore=4, credits=6),
    Structure.academy_left: Cost(ore=6, credits=6),
    Structure.academy_right: Cost(ore=6, credits=6),
}
TRADING_STATION_DISCOUNTED_CREDITS = 3

STRUCTURE_POWER: dict[Structure, int] = {
    Structure.mine: 1,
    Structure.trading_station: 2,
    Structure.research_lab: 2,
    Structure.planetary_institute: 3,
    Structure.academy_left: 3,
    Structure.academy_right: 3,
}

RESOURCE_CAPS: dict[str, int] = {"ore": 15, "knowledge": 15, "credits": 30}

START_SCORE = 10
LOG_CAP = 100
MAX_ROUNDS = 6
OFFER_RADIUS = 2
FEDERATION_POWER = 7


class Track(StrEnum):
    terraforming = "terraforming"
    navigation = "navigation"
    ai = "ai"
    gaia_project = "gaia_project"
    economy = "economy"
    science = "science"


TRACKS: tuple[Track, ...] = tuple(Track)
MAX_TRACK_LEVEL = 5
RESEARCH_COST_KNOWLEDGE = 4


@dataclass(frozen=True, slots=True)
class Faction:
    id: str
    home: Planet
    ore: int = 4
    knowledge: int = 3
    credits: int = 15
    qic: int = 1
    power: tuple[int, int, int] = (2, 4, 0)
    # Base income per round (resource -> amount). "power"/"tokens" become income items.
    income: dict[str, int] = field(default_factory=lambda: {"ore": 1, "knowledge": 1})
    pi_income: dict[str, int] = field(default_factory=lambda: {"power": 4, "tokens": 1})
    research: dict[str, int] = field(default_factory=dict)
    start_mines: int = 2
    starts_with_pi: bool = False


FACTIONS: dict[str, Faction] = {
    f.id: f
    for f in (
        Faction("terrans", Planet.terra, power=(4, 4, 0), research={"gaia_project": 1}),
        Faction(
            "lantids",
            Planet.terra,
            credits=13,
            power=(4, 0, 0),
            income={"ore": 1, "knowledge": 1, "tokens": 1},
            pi_income={"power": 4},
        ),
        Faction("xenos", Planet.desert, research={"ai": 1}, start_mines=3, pi_income={"power": 4, "qic": 1}),
        Faction("gleens", Planet.desert, research={"navigation": 1}, pi_income={"power": 4, "ore": 1}),
        Faction("taklons", Planet.swamp),
        Faction(
            "ambas",
            Planet.swamp,
            research={"navigation": 1},
            income={"ore": 2, "knowledge": 1},
            pi_income={"power": 4, "tokens": 2},
        ),
        Faction("hadsch_hallas", Planet.oxide, research={"economy": 1}, income={"credits": 3}),
        Faction(
            "ivits",
            Planet.oxide,
            power=(2, 2, 0),
            income={"ore": 1, "knowledge": 1, "qic": 1},
            pi_income={"power": 4, "tokens": 1, "qic": 1},
            start_mines=1,
            starts_with_pi=True,
        ),
        Faction("geodens", Planet.volcanic, research={"terraforming": 1}),
        Faction("bal_tak", Planet.volcanic, qic=0, power=(2, 2, 0), research={"gaia_project": 1}),
        Faction("firaks", Planet.titanium, ore=3, knowledge=2, income={"ore": 1, "knowledge": 2}),
        Faction("bescods", Planet.titanium, income={"ore": 1}),
        Faction(
            "itars",
            Planet.ice,
            ore=5,
            power=(4, 4, 0),
            income={"ore": 1, "knowledge": 1, "tokens": 1},
        ),
        Faction("nevlas", Planet.ice, research={"science": 1}),
    )
}

# Factions that never auto-accept a free 1-power offer.
PROMPT_ON_FREE_OFFER: frozenset[str] = frozenset({"itars", "taklons"})


# ---- Power / free actions ----


@dataclass(frozen=True, slots=True)
class PowerAction:
    id: str
    cost: int
    gain: dict[str, int]


POWER_ACTIONS: dict[str, PowerAction] = {
    a.id: a
    for a in (
        PowerAction("gain-3-knowledge", 7, {"knowledge": 3}),
        PowerAction("gain-2-steps", 5, {"steps": 2}),
        PowerAction("gain-2-ore", 4, {"ore": 2}),
        PowerAction("gain-7-credits", 4, {"credits": 7}),
        PowerAction("gain-2-knowledge", 4, {"knowledge": 2}),
        PowerAction("gain-1-step", 3, {"steps": 1}),
        PowerAction("gain-2-tokens", 3, {"tokens": 2}),
    )
}


@dataclass(frozen=True, slots=True)
class Conversion:
    id: str
    pay: dict[str, int]
    gain: dict[str, int]


CONVERSIONS: dict[str, Conversion] = {
    c.id: c
    for c in (
        Conversion("power-to-ore", {"power": 3}, {"ore": 1}),
        Conversion("power-to-qic", {"power": 4}, {"qic": 1}),
        Conversion("power-to-knowledge", {"power": 4}, {"knowledge": 1}),
        Conversion("power-to-credit", {"power": 1}, {"credits": 1}),
        Conversion("knowledge-to-credit", {"knowledge": 1}, {"credits": 1}),
        Conversion("qic-to-ore", {"qic": 1}, {"ore": 1}),
        Conversion("ore-to-credit", {"ore": 1}, {"credits": 1}),
        Conversion("ore-to-token", {"ore": 1}, {"tokens": 1}),
    )
}


# ---- Bonus tiles ----


@dataclass(frozen=True, slots=True)
class BonusTile:
    id: str
    income: dict[str, int]
    pass_kind: str | None = None
    pass_vp: int = 0
    special_action: str | None = None


BONUS_TILES: dict[str, BonusTile] = {
    b.id: b
    for b in (
        BonusTile("bon-4pw-bigbuilding", {"power": 4}, "big_building", 4),
        BonusTile("bon-1o-mine", {"ore": 1}, "mine", 1),
        BonusTile("bon-1o-ts", {"ore": 1}, "trading_station", 2),
        BonusTile("bon-1k-lab", {"knowledge": 1}, "research_lab", 3),
        BonusTile("bon-1o-gaiaformer", {"ore": 1}, "gaiaformer", 3),
        BonusTile("bon-1o-planettype", {"ore": 1}, "planet_type", 1),
        BonusTile("bon-4c-gaia", {"credits": 4}, "gaia", 1),
        BonusTile("bon-2c-terraform", {"credits": 2}, special_action="terraform_step"),
        BonusTile("bon-2pw-gaiaproject", {"power": 2}, special_action="gaia_project"),
        BonusTile("bon-2pw-range3", {"power": 2}, special_action="range_3"),
        BonusTile("bon-1o-2tokens", {"ore": 1, "tokens": 2}),
        BonusTile("bon-1o-1k", {"ore": 1, "knowledge": 1}),
        BonusTile("bon-2c-1q", {"credits": 2, "qic": 1}),
    )
}

RANGE_BONUS_TILE_ACTION = 3


# ---- Tech tiles ----


@dataclass(frozen=True, slots=True)
class TechTile:
    id: str
    advanced: bool = False
    income: dict[str, int] = field(default_factory=dict)
    immediate: dict[str, int] = field(default_factory=dict)
    # Event -> VP, e.g. {"build_mine": 3}.
    on_event_vp: dict[str, int] = field(default_factory=dict)
    action: dict[str, int] = field(default_factory=dict)
    # Pass scoring kind for advanced pass tiles.
    pass_kind: str | None = None
    pass_vp: int = 0
    # Immediate VP scaled by a board count (see scoring.count_for_kind).
    scaled_kind: str | None = None
    scaled_vp: int = 0
    scaled_resource: str | None = None


TECH_TILES: dict[str, TechTile] = {
    t.id: t
    for t in (
        TechTile("tech-inc-1o-1p", income={"ore": 1, "power": 1}),
        TechTile("tech-inc-4c", income={"credits": 4}),
        TechTile("tech-inc-1k-1c", income={"knowledge": 1, "credits": 1}),
        TechTile("tech-imm-7vp", immediate={"vp": 7}),
        TechTile("tech-imm-1k-planet", scaled_kind="planet_type", scaled_resource="knowledge"),
        TechTile("tech-imm-1o-1q", immediate={"ore": 1, "qic": 1}),
        TechTile("tech-gaia-3vp", on_event_vp={"build_gaia": 3}),
        TechTile("tech-big-4str"),
        TechTile("tech-act-4p", action={"power": 4}),
        TechTile("adv-act-3k", advanced=True, action={"knowledge": 3}),
        TechTile("adv-act-3o", advanced=True, action={"ore": 3}),
        TechTile("adv-act-1q-5c", advanced=True, action={"qic": 1, "credits": 5}),
        TechTile("adv-vp-build-mine", advanced=True, on_event_vp={"build_mine": 3}),
        TechTile("adv-vp-build-ts", advanced=True, on_event_vp={"build_trading_station": 3}),
        TechTile("adv-vp-research", advanced=True, on_event_vp={"research_track": 2}),
        TechTile("adv-vp-terraform", advanced=True, on_event_vp={"terraform_step": 2}),
        TechTile("adv-imm-1o-sector", advanced=True, scaled_kind="sector", scaled_resource="ore"),
        TechTile("adv-imm-4vp-ts", advanced=True, scaled_kind="trading_station", scaled_vp=4),
        TechTile("adv-imm-2vp-mine", advanced=True, scaled_kind="mine", scaled_vp=2),
        TechTile("adv-imm-2vp-sector", advanced=True, scaled_kind="sector", scaled_vp=2),
        TechTile("adv-imm-6vp-big", advanced=True, scaled_kind="big_building", scaled_vp=6),
        TechTile("adv-imm-2vp-gaia", advanced=True, scaled_kind="gaia", scaled_vp=2),
        TechTile("adv-imm-5vp-fed", advanced=True, scaled_kind="federation", scaled_vp=5),
        TechTile("adv-pass-1vp-type", advanced=True, pass_kind="planet_type", pass_vp=1),
        TechTile("adv-pass-3vp-lab", advanced=True, pass_kind="research_lab", pass_vp=3),
        TechTile("adv-pass-3vp-fed", advanced=True, pass_kind="federation", pass_vp=3),
    )
}

STANDARD_TECH_IDS: tuple[str, ...] = tuple(t.id for t in TECH_TILES.values() if not t.advanced)
ADVANCED_TECH_IDS: tuple[str, ...] = tuple(t.id for t in TECH_TILES.values() if t.advanced)

ACADEMY_ACTION_ID = "academy-qic"


# ---- Federations ----


@dataclass(frozen=True, slots=True)
class FederationReward:
    id: str
    vp: int
    gain: dict[str, int]
    green: bool = True


FEDERATION_REWARDS: dict[str, FederationReward] = {
    f.id: f
    for f in (
        FederationReward("fed-7vp-2o", 7, {"ore": 2}),
        FederationReward("fed-7vp-6c", 7, {"credits": 6}),
        FederationReward("fed-6vp-2k", 6, {"knowledge": 2}),
        FederationReward("fed-8vp-2token", 8, {"tokens": 2}),
        FederationReward("fed-8vp-1q", 8, {"qic": 1}),
        FederationReward("fed-12vp", 12, {}, green=False),
    )
}
FEDERATION_REWARD_COPIES = 3


# ---- Scoring tiles ----


@dataclass(frozen=True, slots=True)
class RoundMission:
    id: str
    trigger: str
    vp: int


ROUND_MISSIONS: dict[str, RoundMission] = {
    m.id: m
    for m in (
        RoundMission("rm1", "build_mine", 2),
        RoundMission("rm2", "build_trading_station", 3),
        RoundMission("rm3", "build_trading_station", 4),
        RoundMission("rm4", "build_research_lab", 4),
        RoundMission("rm5a", "build_big_building", 5),
        RoundMission("rm5b", "build_big_building", 5),
        RoundMission("rm6", "federation", 5),
        RoundMission("rm7", "new_sector", 3),
        RoundMission("rm8", "new_planet_type", 3),
        RoundMission("rm9", "build_gaia", 3),
        RoundMission("rm10", "build_gaia", 4),
        RoundMission("rm11", "research_track", 2),
        RoundMission("rm12", "terraform_step", 2),
    )
}

FINAL_MISSIONS: tuple[str, ...] = (
    "fm_total_structures",
    "fm_federation_buildings",
    "fm_sectors",
    "fm_gaia_planets",
    "fm_satellites",
    "fm_planet_types",
    "fm_pi_academy_distance",
)
FINAL_MISSION_POINTS: tuple[int, ...] = (18, 12, 6)

# Track completion bonus at game end: (min level, VP), highest first.
TRACK_END_BONUS: tuple[tuple[int, int], ...] = ((5, 12), (4, 8), (3, 4))


# ---- Income tables ----

MINE_INCOME_SLOTS: tuple[int, ...] = (1, 1, 0, 1, 1, 1, 1, 1)
TRADING_STATION_CREDIT_SLOTS: tuple[int, ...] = (3, 4, 4, 5)
ECONOMY_INCOME: tuple[dict[str, int], ...] = (
    {},
    {"credits": 1, "power": 1},
    {"credits": 2, "ore": 1, "power": 2},
    {"credits": 2, "ore": 1, "power": 3},
    {"credits": 2, "ore": 2, "power": 2},
)

GAIA_PROJECT_TOKEN_COST: dict[int, int] = {1: 6, 2: 6, 3: 4, 4: 3, 5: 3}

LEDGER_CATEGORIES: tuple[str, ...] = (
    "round_missions",
    "bonus_tile_pass",
    "tech_tiles",
    "final_missions",
    "power_received",
    "rewards",
    "research_tracks",
    "other",
)
