"""State access and compounding logic of the compounding module."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from decimal import Decimal

from .addresses import (
    ACCOUNT_PREFIX,
    VALIDATOR_PREFIX,
    acc_address_from_bech32,
    bech32_encode,
    val_address_from_bech32,
)
from .errors import CompoundError
from .models import (
    DEFAULT_BOND_DENOM,
    Coin,
    CompoundSetting,
    Context,
    DecCoin,
    DelegationReward,
    Params,
    PreviousCompound,
    StakingCompoundAction,
)

MODULE_NAME = "compound"
COMPOUND_SETTING_KEY_PREFIX = b"CompoundSetting/value/"
PREVIOUS_COMPOUND_KEY_PREFIX = b"PreviousCompound/value/"
PARAMS_KEY = b"Params/compound"


def _key(prefix: bytes, delegator: str) -> bytes:
    return prefix + delegator.encode() + b"/"


def _canonical_account(address: str) -> str:
    return bech32_encode(ACCOUNT_PREFIX, acc_address_from_bech32(address))


def _canonical_validator(address: str) -> str:
    return bech32_encode(VALIDATOR_PREFIX, val_address_from_bech32(address))


class BankKeeper:
    """Account balances per address and denomination."""

    def __init__(self) -> None:
        self._balances: dict[str, dict[str, int]] = {}

    def get_balance(self, ctx: Context, address: str, denom: str) -> Coin:
        return Coin(denom, self._balances.get(address, {}).get(denom, 0))

    def set_balance(self, address: str, coin: Coin) -> None:
        self._balances.setdefault(address, {})[coin.denom] = coin.amount

    def add_coins(self, ctx: Context, address: str, coin: Coin) -> None:
        if coin.amount < 0:
            raise CompoundError(f"negative amount: {coin}")
        held = self._balances.setdefault(address, {})
        held[coin.denom] = held.get(coin.denom, 0) + coin.amount

    def subtract_coins(self, ctx: Context, address: str, coin: Coin) -> None:
        if coin.amount < 0:
            raise CompoundError(f"negative amount: {coin}")
        held = self._balances.setdefault(address, {})
        available = held.get(coin.denom, 0)
        if available < coin.amount:
            raise CompoundError(f"{available}{coin.denom} is smaller than {coin}: insufficient funds")
        held[coin.denom] = available - coin.amount


class StakingKeeper:
    """Validators and delegations."""

    def __init__(self, bank_keeper: BankKeeper, bond_denom: str = DEFAULT_BOND_DENOM) -> None:
        self.bank_keeper = bank_keeper
        self.bond_denom = bond_denom
        self._validators: set[str] = set()
        self._delegations: dict[str, dict[str, int]] = {}

    def add_validator(self, operator_address: str) -> None:
        self._validators.add(_canonical_validator(operator_address))

    def get_validator(self, ctx: Context, operator_address: str) -> str | None:
        return operator_address if operator_address in self._validators else None

    def validator(self, ctx: Context, operator_address: str) -> str | None:
        return self.get_validator(ctx, operator_address)

    def get_delegation(self, ctx: Context, delegator: str, validator: str) -> int | None:
        return self._delegations.get(delegator, {}).get(validator)

    def iterate_delegations(self, ctx: Context, delegator: str) -> Iterator[tuple[str, int]]:
        yield from sorted(self._delegations.get(delegator, {}).items())

    def delegate(self, ctx: Context, delegator: str, amount: int, validator: str,
                 subtract_account: bool = True) -> int:
        if validator not in self._validators:
            raise CompoundError("no validator found")
        if amount < 0:
            raise CompoundError(f"invalid delegation amount: {amount}")
        if subtract_account:
            self.bank_keeper.subtract_coins(ctx, delegator, Coin(self.bond_denom, amount))
        held = self._delegations.setdefault(delegator, {})
        held[validator] = held.get(validator, 0) + amount
        return amount


class DistrKeeper:
    """Outstanding staking rewards and withdraw addresses."""

    def __init__(self, bank_keeper: BankKeeper, staking_keeper: StakingKeeper) -> None:
        self.bank_keeper = bank_keeper
        self.staking_keeper = staking_keeper
        self._withdraw_addrs: dict[str, str] = {}
        self._rewards: dict[tuple[str, str], dict[str, Decimal]] = {}
        self._periods: dict[str, int] = {}

    def allocate_rewards(self, delegator: str, validator: str, rewards: Iterable[DecCoin]) -> None:
        accrued = self._rewards.setdefault((delegator, validator), {})
        for reward in rewards:
            accrued[reward.denom] = accrued.get(reward.denom, Decimal(0)) + reward.amount

    def get_delegator_withdraw_addr(self, ctx: Context, delegator: str) -> str:
        return self._withdraw_addrs.get(delegator, delegator)

    def set_delegator_withdraw_addr(self, ctx: Context, delegator: str, withdraw_addr: str) -> None:
        if withdraw_addr == delegator:
            self._withdraw_addrs.pop(delegator, None)
        else:
            self._withdraw_addrs[delegator] = withdraw_addr

    def increment_validator_period(self, ctx: Context, validator: str | None) -> int:
        period = self._periods.get(validator or "", 1)
        self._periods[validator or ""] = period + 1
        return period

    def calculate_delegation_rewards(self, ctx: Context, validator: str | None, delegator: str,
                                     ending_period: int) -> list[DecCoin]:
        accrued = self._rewards.get((delegator, validator or ""), {})
        return [DecCoin(denom, amount) for denom, amount in sorted(accrued.items())]

    def withdraw_delegation_rewards(self, ctx: Context, delegator: str, validator: str) -> list[Coin]:
        """Pay the whole part of the rewards to the withdraw address."""
        if self.staking_keeper.get_delegation(ctx, delegator, validator) is None:
            raise CompoundError("no delegation for (address, validator) tuple")
        accrued = self._rewards.pop((delegator, validator), {})
        coins = [c for c in (DecCoin(d, a).truncate() for d, a in sorted(accrued.items())) if c.amount > 0]
        recipient = self.get_delegator_withdraw_addr(ctx, delegator)
        for coin in coins:
            self.bank_keeper.add_coins(ctx, recipient, coin)
        return coins


class Keeper:
    """Reads and writes module state and performs compounding."""

    def __init__(self, bank_keeper: BankKeeper, distr_keeper: DistrKeeper,
                 staking_keeper: StakingKeeper) -> None:
        self.bank_keeper = bank_keeper
        self.distr_keeper = distr_keeper
        self.staking_keeper = staking_keeper

    def logger(self, ctx: Context) -> logging.LoggerAdapter:
        return logging.LoggerAdapter(ctx.logger, {"module": f"x/{MODULE_NAME}"})

    def check_frequency(self, ctx: Context, once_every: int) -> int:
        return max(once_every, self.minimum_compound_frequency(ctx))

    def set_compound_setting(self, ctx: Context, compound_setting: CompoundSetting) -> None:
        ctx.store.set(_key(COMPOUND_SETTING_KEY_PREFIX, compound_setting.delegator), compound_setting)

    def get_compound_setting(self, ctx: Context, delegator: str) -> CompoundSetting | None:
        return ctx.store.get(_key(COMPOUND_SETTING_KEY_PREFIX, delegator))

    def remove_compound_setting(self, ctx: Context, delegator: str) -> None:
        ctx.store.delete(_key(COMPOUND_SETTING_KEY_PREFIX, delegator))

    def get_all_compound_setting(self, ctx: Context) -> list[CompoundSetting]:
        return [value for _, value in ctx.store.iterate(COMPOUND_SETTING_KEY_PREFIX)]

    def set_previous_compound(self, ctx: Context, previous_compound: PreviousCompound) -> None:
        ctx.store.set(_key(PREVIOUS_COMPOUND_KEY_PREFIX, previous_compound.delegator), previous_compound)

    def get_previous_compound(self, ctx: Context, delegator: str) -> PreviousCompound | None:
        return ctx.store.get(_key(PREVIOUS_COMPOUND_KEY_PREFIX, delegator))

    def remove_previous_compound(self, ctx: Context, delegator: str) -> None:
        ctx.store.delete(_key(PREVIOUS_COMPOUND_KEY_PREFIX, delegator))

    def get_all_previous_compound(self, ctx: Context) -> list[PreviousCompound]:
        return [value for _, value in ctx.store.iterate(PREVIOUS_COMPOUND_KEY_PREFIX)]

    def get_params(self, ctx: Context) -> Params:
        params = ctx.store.get(PARAMS_KEY)
        if params is None:
            raise LookupError("compound module parameters are not set")
        return params

    def set_params(self, ctx: Context, params: Params) -> None:
        ctx.store.set(PARAMS_KEY, params)

    def number_of_compounds_per_block(self, ctx: Context) -> int:
        return self.get_params(ctx).number_of_compounds_per_block

    def minimum_compound_frequency(self, ctx: Context) -> int:
        return self.get_params(ctx).minimum_compound_frequency

    def compound_module_enabled(self, ctx: Context) -> bool:
        return self.get_params(ctx).compound_module_enabled

    def run_compounding(self, ctx: Context) -> None:
        """Compound every due setting, up to the per-block limit."""
        limit = remaining = self.number_of_compounds_per_block(ctx)
        for setting in self.get_all_compound_setting(ctx):
            if not self.should_compound_happen(ctx, setting):
                continue
            try:
                happened = self.compound(ctx, setting)
            except (CompoundError, ValueError) as exc:
                # A failed compound must not stop the block.
                self.logger(ctx).error("compound error: %s", exc)
                continue
            remaining -= happened
            if remaining <= 0:
                break
        self.logger(ctx).info("Compounds in this block: %d", limit - remaining)

    def compound(self, ctx: Context, cs: CompoundSetting) -> bool:
        """Claim the delegator's rewards and re-delegate them; True if it happened."""
        address = _canonical_account(cs.delegator)
        delegations = self.delegation_total_rewards(ctx, address)
        wallet_balance = self.bank_keeper.get_balance(ctx, address, DEFAULT_BOND_DENOM)
        amount = self.total_compound_amount(delegations, wallet_balance, cs)
        if amount.amount < 0:
            raise CompoundError("amountToCompound is below 0 for: " + cs.delegator)
        if amount.amount == 0:
            return False
        total_percent, actions = self.build_compound_actions(cs, amount)
        if not actions:
            return False
        if total_percent > 100:
            raise CompoundError("totalCompoundPercent can't be over 100")
        actions = self.handle_left_over_amount(actions, total_percent, amount)

        withdraw_addr = self.distr_keeper.get_delegator_withdraw_addr(ctx, address)
        if withdraw_addr != address:
            self.distr_keeper.set_delegator_withdraw_addr(ctx, address, address)
        for delegation in delegations:
            validator = _canonical_validator(delegation.validator_address)
            self.distr_keeper.withdraw_delegation_rewards(ctx, address, validator)
        if withdraw_addr != address:
            self.distr_keeper.set_delegator_withdraw_addr(ctx, address, withdraw_addr)

        for action in actions:
            self.delegate(ctx, action, address)
        return True

    def should_compound_happen(self, ctx: Context, cs: CompoundSetting) -> bool:
        previous = self.get_previous_compound(ctx, cs.delegator)
        return previous is None or ctx.block_height >= previous.block_height + cs.frequency

    def delegate(self, ctx: Context, compound_action: StakingCompoundAction, address: str) -> None:
        validator = self.staking_keeper.get_validator(
            ctx, _canonical_validator(compound_action.validator_address))
        if validator is None:
            raise CompoundError("validator not found")
        self.staking_keeper.delegate(ctx, address, compound_action.balance.amount, validator)
        self.record_compound(ctx, address)

    def handle_left_over_amount(self, compound_actions: list[StakingCompoundAction],
                                total_compound_percent: int,
                                amount_to_compound: Coin) -> list[StakingCompoundAction]:
        """Give any rounding remainder to the first action when compounding 100%."""
        if total_compound_percent == 100:
            planned = sum(action.balance.amount for action in compound_actions)
            left_over = amount_to_compound.amount - planned
            if left_over > 0:
                first = compound_actions[0]
                first.balance = Coin(first.balance.denom, first.balance.amount + left_over)
        return compound_actions

    def build_compound_actions(self, cs: CompoundSetting,
                               amount_to_compound: Coin) -> tuple[int, list[StakingCompoundAction]]:
        actions = [
            StakingCompoundAction(
                validator_address=s.validator_address,
                balance=Coin(amount_to_compound.denom,
                             self.calculate_compound_amount(amount_to_compound, s.percent_to_compound)),
            )
            for s in cs.validator_setting
        ]
        return sum(s.percent_to_compound for s in cs.validator_setting), actions

    def total_compound_amount(self, delegations: list[DelegationReward], wallet_balance: Coin,
                              cs: CompoundSetting) -> Coin:
        return self.staking_compound_amount(delegations).add(
            self.extra_compound_amount(cs, wallet_balance))

    def staking_compound_amount(self, delegations: list[DelegationReward]) -> Coin:
        return Coin(DEFAULT_BOND_DENOM, sum(
            reward.truncate().amount
            for delegation in delegations
            for reward in delegation.reward
            if reward.denom == DEFAULT_BOND_DENOM
        ))

    def extra_compound_amount(self, cs: CompoundSetting, wallet_balance: Coin) -> Coin:
        """Return the wallet balance above the amount the delegator keeps."""
        remain = cs.amount_to_remain
        if (remain.is_valid() and wallet_balance.denom == remain.denom
                and wallet_balance.amount > remain.amount):
            return wallet_balance.sub(remain)
        return Coin(DEFAULT_BOND_DENOM, 0)

    def record_compound(self, ctx: Context, address: str) -> None:
        value = self.get_previous_compound(ctx, address) or PreviousCompound()
        value.delegator = address
        value.block_height = ctx.block_height
        self.set_previous_compound(ctx, value)

    def calculate_compound_amount(self, reward_amount: Coin, percent_to_compound: int) -> int:
        product = reward_amount.amount * percent_to_compound
        return product // 100 if product >= 0 else -(-product // 100)

    def delegation_total_rewards(self, ctx: Context, delegator: str) -> list[DelegationReward]:
        """Return the outstanding rewards of each of the delegator's delegations."""
        if delegator == "":
            raise CompoundError("empty delegator address")
        acc_address_from_bech32(delegator)
        rewards = []
        for validator_address, _ in self.staking_keeper.iterate_delegations(ctx, delegator):
            validator = self.staking_keeper.validator(ctx, validator_address)
            period = self.distr_keeper.increment_validator_period(ctx, validator)
            reward = self.distr_keeper.calculate_delegation_rewards(ctx, validator, delegator, period)
            rewards.append(DelegationReward(validator_address, reward))
        return rewards