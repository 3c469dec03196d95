from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, Field

from gaia_engine.core.catalog import LOG_CAP, START_SCORE, TRACKS, Planet, Structure
from gaia_engine.core.errors import RuleViolation


class SessionPhase(StrEnum):
    lobby = "lobby"
    faction_select = "faction_select"
    starting_placement = "starting_placement"
    bonus_select = "bonus_select"
    main = "main"
    game_end = "game_end"


class RoundStage(StrEnum):
    income = "income"
    actions = "actions"


class Tile(BaseModel):
    id: str
    q: int
    r: int
    sector: int
    planet: Planet
    owner: str | None = None
    structure: Structure | None = None

    # Gaia project marker: the planet turns gaia at the end of `gaiaformer_round`.
    gaiaformer_owner: str | None = None
    gaiaformer_round: int | None = None

    # Seats with a federation satellite on this (space) tile.
    satellites: list[str] = Field(default_factory=list)
    federation_id: str | None = None


class LedgerEntry(BaseModel):
    category: str
    amount: float
    reason: str
    round: int


class LogEntry(BaseModel):
    seq: int
    round: int
    seat_id: str | None = None
    message: str


def _empty_research() -> dict[str, int]:
    return {t.value: 0 for t in TRACKS}


class Seat(BaseModel):
    seat_id: str
    display_name: str
    is_bot: bool = False
    ready: bool = False

    faction: str | None = None
    turn_order_preference: int | None = None

    ore: int = 0
    knowledge: int = 0
    credits: int = 0
    qic: int = 0
    power1: int = 0
    power2: int = 0
    power3: int = 0
    # Tokens parked in the gaia area until next income.
    gaiaformer_power: int = 0

    research: dict[str, int] = Field(default_factory=_empty_research)
    tech_tiles: list[str] = Field(default_factory=list)
    covered_tech_tiles: list[str] = Field(default_factory=list)
    bonus_tile: str | None = None

    score: float = START_SCORE
    ledger: list[LedgerEntry] = Field(default_factory=list)

    # Per-turn / per-round flags.
    main_action_done: bool = False
    passed: bool = False
    used_actions: list[str] = Field(default_factory=list)
    pending_terraform_steps: int = 0
    temp_range_bonus: int = 0

    gaiaformers: int = 0
    gaiaformers_total: int = 0
    green_federations: int = 0
    federations: list[str] = Field(default_factory=list)

    def active_tech_tiles(self) -> list[str]:
        return [t for t in self.tech_tiles if t not in self.covered_tech_tiles]


class PowerOffer(BaseModel):
    id: str
    target_seat_id: str
    source_seat_id: str
    tile_id: str
    amount: int
    vp_cost: int


class IncomeItem(BaseModel):
    kind: Literal["power", "tokens"]
    amount: int
    source: str


class ChooseTechTile(BaseModel):
    kind: Literal["choose_tech_tile"] = "choose_tech_tile"
    seat_id: str


class CoverTechTile(BaseModel):
    kind: Literal["cover_tech_tile"] = "cover_tech_tile"
    seat_id: str
    advanced_tile_id: str
    track: str


class ChooseFederationReward(BaseModel):
    kind: Literal["choose_federation_reward"] = "choose_federation_reward"
    seat_id: str
    options: list[str]


PendingInteraction = Annotated[
    ChooseTechTile | CoverTechTile | ChooseFederationReward,
    Field(discriminator="kind"),
]


class ChooseIncomeOrder(BaseModel):
    kind: Literal["choose_income_order"] = "choose_income_order"
    seat_id: str
    items: list[IncomeItem]
    applied: list[IncomeItem] = Field(default_factory=list)
    # Bowls (power1, power2, power3) before each applied item; popped on undo.
    bowl_history: list[tuple[int, int, int]] = Field(default_factory=list)


class BoardPools(BaseModel):
    bonus_tiles: list[str] = Field(default_factory=list)
    tech_tracks: dict[str, str] = Field(default_factory=dict)
    tech_pool: list[str] = Field(default_factory=list)
    advanced_tracks: dict[str, str] = Field(default_factory=dict)
    power_actions_used: list[str] = Field(default_factory=list)
    federation_pool: dict[str, int] = Field(default_factory=dict)
    terraforming_reward: str | None = None


class TurnSnapshot(BaseModel):
    seats: dict[str, Seat]
    tiles: list[Tile]
    pools: BoardPools
    power_offers: list[PowerOffer]
    log_seq: int


class Session(BaseModel):
    session_id: UUID
    name: str
    created_at: datetime
    last_updated_at: datetime
    seed: int
    max_seats: int = Field(4, ge=1, le=4)

    phase: SessionPhase = SessionPhase.lobby
    round_stage: RoundStage = RoundStage.actions
    seats: dict[str, Seat] = Field(default_factory=dict)
    # Join order; turn order is fixed once factions are chosen.
    seat_order: list[str] = Field(default_factory=list)
    turn_order: list[str] = Field(default_factory=list)
    current_seat_index: int = 0
    round_number: int = 0

    tiles: list[Tile] = Field(default_factory=list)
    placement_order: list[str] = Field(default_factory=list)
    placement_index: int = 0
    bonus_select_index: int = 0
    passing_order: list[str] = Field(default_factory=list)

    pools: BoardPools = Field(default_factory=BoardPools)
    round_missions: list[str] = Field(default_factory=list)
    final_missions: list[str] = Field(default_factory=list)

    pending: PendingInteraction | None = None
    income_order: ChooseIncomeOrder | None = None
    income_queue: list[str] = Field(default_factory=list)
    power_offers: list[PowerOffer] = Field(default_factory=list)
    federation_seq: int = 0
    offer_seq: int = 0

    log: list[LogEntry] = Field(default_factory=list)
    log_seq: int = 0
    turn_snapshots: dict[str, TurnSnapshot] = Field(default_factory=dict)
    final_scoring_done: bool = False

    # ---- lookups ----

    def seat(self, seat_id: str) -> Seat:
        seat = self.seats.get(seat_id)
        if seat is None:
            raise RuleViolation("Seat not found")
        return seat

    def tile(self, tile_id: str) -> Tile:
        for t in self.tiles:
            if t.id == tile_id:
                return t
        raise RuleViolation("Tile not found")

    @property
    def current_seat_id(self) -> str | None:
        if self.phase == SessionPhase.starting_placement:
            if self.placement_index < len(self.placement_order):
                return self.placement_order[self.placement_index]
            return None
        if not self.turn_order:
            return None
        if self.phase == SessionPhase.bonus_select:
            return self.turn_order[self.bonus_select_index]
        if self.phase == SessionPhase.main:
            return self.turn_order[self.current_seat_index]
        return None

    def structures_of(self, seat_id: str) -> list[Tile]:
        return [t for t in self.tiles if t.owner == seat_id and t.structure is not None]

    def append_log(self, message: str, *, seat_id: str | None = None) -> None:
        self.log_seq += 1
        self.log.append(LogEntry(seq=self.log_seq, round=self.round_number, seat_id=seat_id, message=message))
        if len(self.log) > LOG_CAP:
            del self.log[: len(self.log) - LOG_CAP]
