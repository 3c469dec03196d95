"""Heuristic move selection for bot seats.

`candidate_commands` lists plausible commands in priority order; the first one
the executor accepts is the bot's move. Scores only rank candidates, legality
is always decided by the rules engine.
"""

from __future__ import annotations

from gaia_engine.actions import apply_command
from gaia_engine.bots.resolver import resolve_pending
from gaia_engine.core.catalog import (
    BONUS_TILES,
    FACTIONS,
    MAX_ROUNDS,
    POWER_ACTIONS,
    RESEARCH_COST_KNOWLEDGE,
    Planet,
    Structure,
)
from gaia_engine.core.errors import RuleViolation
from gaia_engine.core.formulas import faction_of, mine_cost, upgrade_cost
from gaia_engine.core.hexmap import hex_distance, tiles_within
from gaia_engine.core.models import RoundStage, Seat, Session, SessionPhase, Tile
from gaia_engine.core.resources import can_pay
from gaia_engine.core.scoring import count_for_kind
from gaia_engine.rules.research import can_advance
from gaia_engine.turn_processing.commands import (
    AdvanceResearch,
    BuildMine,
    ChooseFaction,
    Command,
    EndTurn,
    PassRound,
    PlaceStartingStructure,
    SelectBonusTile,
    Upgrade,
    UsePowerAction,
)

RESEARCH_PREFERENCE: tuple[str, ...] = ("economy", "terraforming", "ai", "science", "navigation", "gaia_project")

# (target, source) in priority order.
UPGRADE_PREFERENCE: tuple[tuple[Structure, Structure], ...] = (
    (Structure.planetary_institute, Structure.trading_station),
    (Structure.academy_left, Structure.research_lab),
    (Structure.academy_right, Structure.research_lab),
    (Structure.trading_station, Structure.mine),
    (Structure.research_lab, Structure.trading_station),
)

_INCOME_WEIGHTS = {"ore": 3, "knowledge": 3, "credits": 1, "qic": 4, "power": 1, "tokens": 1}

# Power actions that pay for terraforming steps, by step count.
_STEP_ACTIONS = {2: ("gain-2-steps", 70), 1: ("gain-1-step", 60)}


def acting_bot(session: Session) -> str | None:
    """The bot seat expected to move next, if any."""

    order = session.income_order
    if order is not None:
        return order.seat_id if session.seat(order.seat_id).is_bot else None
    if session.pending is not None:
        seat_id = session.pending.seat_id
        return seat_id if session.seat(seat_id).is_bot else None

    if session.phase == SessionPhase.faction_select:
        return next((s.seat_id for s in session.seats.values() if s.is_bot and s.faction is None), None)
    if session.phase in (SessionPhase.starting_placement, SessionPhase.bonus_select, SessionPhase.main):
        if session.phase == SessionPhase.main and (session.round_stage != RoundStage.actions or session.power_offers):
            # Humans still have offers to answer.
            return None
        seat_id = session.current_seat_id
        if seat_id is not None and session.seat(seat_id).is_bot:
            return seat_id
    return None


def propose_command(session: Session, seat_id: str) -> Command | None:
    """First candidate the executor accepts, or None when the bot has no legal move."""

    for command in candidate_commands(session, seat_id):
        if apply_command(session=session, seat_id=seat_id, command=command, by_bot=True).applied:
            return command
    return None


def candidate_commands(session: Session, seat_id: str) -> list[Command]:
    pending = resolve_pending(session, seat_id)
    if pending is not None:
        return [pending]

    seat = session.seat(seat_id)
    if session.phase == SessionPhase.faction_select:
        return [ChooseFaction(faction=f) for f in _free_factions(session)]
    if session.phase == SessionPhase.starting_placement:
        return [PlaceStartingStructure(tile_id=t.id) for t in _rank_start_tiles(session, seat)]
    if session.phase == SessionPhase.bonus_select:
        return [SelectBonusTile(bonus_tile=b) for b in _rank_bonus_tiles(session, seat)]
    if session.phase == SessionPhase.main:
        return _main_candidates(session, seat)
    return []


# ---- setup ----


def _free_factions(session: Session) -> list[str]:
    taken = [s.faction for s in session.seats.values() if s.faction is not None]
    homes = {FACTIONS[f].home for f in taken}
    return [fid for fid, f in FACTIONS.items() if fid not in taken and f.home not in homes]


def _is_empty_planet(tile: Tile) -> bool:
    return tile.planet != Planet.space and tile.owner is None


def start_tile_score(session: Session, seat: Seat, tile: Tile) -> int:
    score = 0
    for other in tiles_within(tile, session.tiles, 3):
        d = hex_distance(tile, other)
        if other.owner not in (None, seat.seat_id) and other.structure is not None and d <= 2:
            score += 5
        elif _is_empty_planet(other):
            score += 2 if d <= 2 else 1
    return score


def _rank_start_tiles(session: Session, seat: Seat) -> list[Tile]:
    home = faction_of(seat).home
    options = [t for t in session.tiles if t.planet == home and t.owner is None]
    return sorted(options, key=lambda t: -start_tile_score(session, seat, t))


def bonus_tile_score(session: Session, seat: Seat, tile_id: str) -> float:
    """Income early, pass VP later."""

    tile = BONUS_TILES[tile_id]
    income = sum(_INCOME_WEIGHTS.get(k, 0) * v for k, v in tile.income.items())
    late = max(session.round_number, 1) / MAX_ROUNDS
    score = income * (1.5 - late)
    if tile.pass_kind is not None and seat.faction is not None:
        score += tile.pass_vp * count_for_kind(session, seat, tile.pass_kind) * late
    if tile.special_action is not None:
        score += 2
    return score


def _rank_bonus_tiles(session: Session, seat: Seat) -> list[str]:
    return sorted(session.pools.bonus_tiles, key=lambda b: -bonus_tile_score(session, seat, b))


# ---- main stage ----


def _main_candidates(session: Session, seat: Seat) -> list[Command]:
    if seat.main_action_done:
        return [EndTurn()]

    out: list[Command] = []
    builds = _rank_builds(session, seat)
    if seat.pending_terraform_steps:
        out.extend(c for _, c in builds if isinstance(c, BuildMine))
    out.extend(_upgrade_candidates(session, seat))
    out.extend(c for _, c in builds)
    out.extend(_research_candidates(session, seat))
    out.append(_pass_command(session, seat))
    return out


def _upgrade_candidates(session: Session, seat: Seat) -> list[Command]:
    owned = session.structures_of(seat.seat_id)
    out: list[Command] = []
    for target, source in UPGRADE_PREFERENCE:
        for tile in owned:
            if tile.structure != source:
                continue
            cost = upgrade_cost(session, seat, tile, target)
            if can_pay(seat, {"ore": cost.ore, "credits": cost.credits}):
                out.append(Upgrade(tile_id=tile.id, to=target))
                break
    return out


def build_score(session: Session, seat: Seat, tile: Tile) -> tuple[int, Command] | None:
    """Score one mine site, or None when it is out of reach or unaffordable."""

    try:
        cost = mine_cost(session, seat, tile)
    except RuleViolation:
        return None
    gaia_qic = 1 if tile.planet == Planet.gaia and not cost.uses_own_gaiaformer else 0
    if cost.qic - gaia_qic > 1:
        return None

    build = BuildMine(tile_id=tile.id)
    affordable = can_pay(seat, {"ore": cost.ore, "credits": cost.credits, "qic": cost.qic})
    paid_steps = cost.steps - cost.free_steps

    if tile.planet == Planet.gaia:
        return ((90 if cost.uses_own_gaiaformer else 75), build) if affordable else None
    if cost.steps == 0:
        return ((100 if cost.qic == 0 else 80), build) if affordable else None
    if paid_steps == 0:
        return (85, build) if affordable else None

    step_action = _STEP_ACTIONS.get(paid_steps)
    if step_action is not None:
        action_id, score = step_action
        power_cost = POWER_ACTIONS[action_id].cost
        if action_id not in session.pools.power_actions_used and seat.power3 >= power_cost:
            return score, UsePowerAction(action_id=action_id)
    if not affordable:
        return None
    base = {1: 55, 2: 40}.get(paid_steps, 30)
    return base - 5 * paid_steps, build


def _rank_builds(session: Session, seat: Seat) -> list[tuple[int, Command]]:
    scored: list[tuple[int, Command]] = []
    for tile in session.tiles:
        if tile.owner is not None or tile.planet in (Planet.space, Planet.transdim):
            continue
        if tile.gaiaformer_owner not in (None, seat.seat_id):
            continue
        entry = build_score(session, seat, tile)
        if entry is not None:
            scored.append(entry)
    # sorted() is stable: equal scores keep board order.
    return sorted(scored, key=lambda e: -e[0])


def _research_candidates(session: Session, seat: Seat) -> list[Command]:
    if seat.knowledge < RESEARCH_COST_KNOWLEDGE:
        return []
    order = list(RESEARCH_PREFERENCE)
    if session.round_number >= 3 and seat.research["terraforming"] < 3:
        order.remove("terraforming")
        order.insert(0, "terraforming")
    return [AdvanceResearch(track=t) for t in order if can_advance(session, seat, t)]


def _pass_command(session: Session, seat: Seat) -> PassRound:
    if session.round_number >= MAX_ROUNDS or not session.pools.bonus_tiles:
        return PassRound()
    return PassRound(bonus_tile=_rank_bonus_tiles(session, seat)[0])
