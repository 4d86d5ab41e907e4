"""Transaction handlers for compound settings."""

from __future__ import annotations

from dataclasses import dataclass, field

from .addresses import VALIDATOR_PREFIX, bech32_encode, val_address_from_bech32
from .errors import InvalidRequestError, KeyNotFoundError, UnauthorizedError
from .keeper import Keeper
from .models import Coin, CompoundSetting, Context, ValidatorSetting


@dataclass
class MsgCreateCompoundSetting:
    delegator: str = ""
    validator_setting: list[ValidatorSetting] | None = None
    amount_to_remain: Coin = field(default_factory=Coin)
    frequency: int = 0


@dataclass
class MsgUpdateCompoundSetting(MsgCreateCompoundSetting):
    pass


@dataclass
class MsgDeleteCompoundSetting:
    delegator: str = ""


class MsgServer:
    """Handles compound-setting transactions against a keeper."""

    def __init__(self, keeper: Keeper) -> None:
        self.keeper = keeper

    def _store(self, ctx: Context, msg: MsgCreateCompoundSetting) -> CompoundSetting:
        setting = CompoundSetting(
            delegator=msg.delegator,
            validator_setting=list(msg.validator_setting or []),
            amount_to_remain=msg.amount_to_remain,
            frequency=self.keeper.check_frequency(ctx, msg.frequency),
        )
        self.keeper.set_compound_setting(ctx, setting)
        return setting

    def create_compound_setting(self, ctx: Context, msg: MsgCreateCompoundSetting) -> CompoundSetting:
        if self.keeper.get_compound_setting(ctx, msg.delegator) is not None:
            raise InvalidRequestError("compoundSettings already set, do an update instead")
        self.validate_validator_settings(ctx, msg.validator_setting)
        return self._store(ctx, msg)

    def update_compound_setting(self, ctx: Context, msg: MsgUpdateCompoundSetting) -> CompoundSetting:
        existing = self.keeper.get_compound_setting(ctx, msg.delegator)
        if existing is None:
            raise KeyNotFoundError("CompoundSettings not found, create them first")
        self.validate_validator_settings(ctx, msg.validator_setting)
        if msg.delegator != existing.delegator:
            raise UnauthorizedError("incorrect owner")
        return self._store(ctx, msg)

    def delete_compound_setting(self, ctx: Context, msg: MsgDeleteCompoundSetting) -> None:
        existing = self.keeper.get_compound_setting(ctx, msg.delegator)
        if existing is None:
            raise KeyNotFoundError("CompoundSetting not found")
        if msg.delegator != existing.delegator:
            raise UnauthorizedError("incorrect owner")
        self.keeper.remove_compound_setting(ctx, msg.delegator)

    def validate_validator_settings(self, ctx: Context,
                                    validator_setting: list[ValidatorSetting] | None) -> None:
        """Raise unless every validator setting is acceptable."""
        if validator_setting is None:
            raise InvalidRequestError("validatorSetting can not be empty")
        total_percent = 0
        seen: set[str] = set()
        for setting in validator_setting:
            if not 1 <= setting.percent_to_compound <= 100:
                raise InvalidRequestError("percentToCompound can not be less than 1 or greater than 100")
            total_percent += setting.percent_to_compound
            if not 1 <= total_percent <= 100:
                raise InvalidRequestError(
                    "total percentToCompound across all ValidatorSetting can not be "
                    "less than 1 or greater than 100")
            address = bech32_encode(VALIDATOR_PREFIX, val_address_from_bech32(setting.validator_address))
            if self.keeper.staking_keeper.get_validator(ctx, address) is None:
                raise InvalidRequestError("can not find validator")
            if setting.validator_address in seen:
                raise InvalidRequestError("validator address can not be found in another validator setting")
            seen.add(setting.validator_address)