"""Genesis import and export."""

from __future__ import annotations

from .keeper import Keeper
from .models import Context, GenesisState


def init_genesis(ctx: Context, keeper: Keeper, gen_state: GenesisState) -> None:
    for setting in gen_state.compound_setting_list:
        keeper.set_compound_setting(ctx, setting)
    for previous in gen_state.previous_compound_list:
        keeper.set_previous_compound(ctx, previous)
    keeper.set_params(ctx, gen_state.params)


def export_genesis(ctx: Context, keeper: Keeper) -> GenesisState:
    return GenesisState(
        params=keeper.get_params(ctx),
        compound_setting_list=keeper.get_all_compound_setting(ctx),
        previous_compound_list=keeper.get_all_previous_compound(ctx),
    )