"""Closed set of player commands, one model per action kind.

`Command` is a discriminated union on `type`; the API parses request bodies
straight into it so handlers never see loosely-typed payloads.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field, TypeAdapter

from gaia_engine.core.catalog import Structure, Track

# ---- setup ----


class ChooseFaction(BaseModel):
    type: Literal["choose_faction"] = "choose_faction"
    faction: str
    turn_order_preference: int | None = Field(None, ge=1, le=4)


class PlaceStartingStructure(BaseModel):
    type: Literal["place_starting_structure"] = "place_starting_structure"
    tile_id: str


class SelectBonusTile(BaseModel):
    type: Literal["select_bonus_tile"] = "select_bonus_tile"
    bonus_tile: str


# ---- income ----


class SelectIncomeItem(BaseModel):
    type: Literal["select_income_item"] = "select_income_item"
    index: int = Field(..., ge=0)


class AutoOrderIncome(BaseModel):
    type: Literal["auto_order_income"] = "auto_order_income"


class UndoIncomeItem(BaseModel):
    type: Literal["undo_income_item"] = "undo_income_item"


class FinishIncome(BaseModel):
    type: Literal["finish_income"] = "finish_income"


# ---- main actions ----


class BuildMine(BaseModel):
    type: Literal["build_mine"] = "build_mine"
    tile_id: str


class Upgrade(BaseModel):
    type: Literal["upgrade"] = "upgrade"
    tile_id: str
    to: Structure


class AdvanceResearch(BaseModel):
    type: Literal["advance_research"] = "advance_research"
    track: Track


class PlaceGaiaformer(BaseModel):
    type: Literal["place_gaiaformer"] = "place_gaiaformer"
    tile_id: str


class FormFederation(BaseModel):
    type: Literal["form_federation"] = "form_federation"
    structure_tile_ids: list[str] = Field(..., min_length=1)
    satellite_tile_ids: list[str] = Field(default_factory=list)


class UsePowerAction(BaseModel):
    type: Literal["use_power_action"] = "use_power_action"
    action_id: str


class UseSpecialAction(BaseModel):
    """Tech tile, academy or bonus tile action. `tile_id` targets the bonus gaia project."""

    type: Literal["use_special_action"] = "use_special_action"
    action_id: str
    tile_id: str | None = None


class Convert(BaseModel):
    type: Literal["convert"] = "convert"
    conversion_id: str
    times: int = Field(1, ge=1, le=30)


class BurnPower(BaseModel):
    type: Literal["burn_power"] = "burn_power"
    times: int = Field(1, ge=1, le=10)


class PassRound(BaseModel):
    type: Literal["pass"] = "pass"
    bonus_tile: str | None = None


class EndTurn(BaseModel):
    type: Literal["end_turn"] = "end_turn"


class ResetTurn(BaseModel):
    type: Literal["reset_turn"] = "reset_turn"


# ---- reactive ----


class RespondOffer(BaseModel):
    type: Literal["respond_offer"] = "respond_offer"
    offer_id: str
    accept: bool


class AcceptAllOffers(BaseModel):
    type: Literal["accept_all_offers"] = "accept_all_offers"


class PickTechTile(BaseModel):
    type: Literal["choose_tech_tile"] = "choose_tech_tile"
    tile_id: str
    track: Track | None = None


class ConfirmCover(BaseModel):
    type: Literal["cover_tech_tile"] = "cover_tech_tile"
    tile_id: str


class PickFederationReward(BaseModel):
    type: Literal["choose_federation_reward"] = "choose_federation_reward"
    reward_id: str


Command = Annotated[
    ChooseFaction
    | PlaceStartingStructure
    | SelectBonusTile
    | SelectIncomeItem
    | AutoOrderIncome
    | UndoIncomeItem
    | FinishIncome
    | BuildMine
    | Upgrade
    | AdvanceResearch
    | PlaceGaiaformer
    | FormFederation
    | UsePowerAction
    | UseSpecialAction
    | Convert
    | BurnPower
    | PassRound
    | EndTurn
    | ResetTurn
    | RespondOffer
    | AcceptAllOffers
    | PickTechTile
    | ConfirmCover
    | PickFederationReward,
    Field(discriminator="type"),
]

command_adapter: TypeAdapter[Command] = TypeAdapter(Command)


def parse_command(payload: object) -> Command:
    return command_adapter.validate_python(payload)
