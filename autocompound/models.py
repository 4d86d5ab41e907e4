"""Value types used by the compounding module."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal

from .store import KVStore

DEFAULT_BOND_DENOM = "stake"

_DENOM = r"[a-zA-Z][a-zA-Z0-9/:._-]{2,127}"
_DENOM_RE = re.compile(rf"^{_DENOM}$")
_DEC_COIN_RE = re.compile(rf"^([0-9]+(?:\.[0-9]+)?|\.[0-9]+)\s*({_DENOM})$")
_MAX_DECIMALS = 18


@dataclass(frozen=True)
class Coin:
    """An integer amount of a single denomination."""

    denom: str = ""
    amount: int = 0

    def add(self, other: Coin) -> Coin:
        """Return the sum of two coins of the same denomination."""
        if self.denom != other.denom:
            raise ValueError(f"invalid coin denominations; {self.denom}, {other.denom}")
        return Coin(self.denom, self.amount + other.amount)

    def sub(self, other: Coin) -> Coin:
        """Return the difference of two coins; the result may not be negative."""
        if self.denom != other.denom:
            raise ValueError(f"invalid coin denominations; {self.denom}, {other.denom}")
        result = Coin(self.denom, self.amount - other.amount)
        if result.amount < 0:
            raise ValueError("negative coin amount")
        return result

    def is_valid(self) -> bool:
        """True when the denomination is well formed and the amount not negative."""
        return bool(_DENOM_RE.match(self.denom)) and self.amount >= 0

    @classmethod
    def parse(cls, text: str) -> Coin:
        """Parse text such as ``10token`` or ``1.5token``; fractions are truncated."""
        match = _DEC_COIN_RE.match(text.strip())
        if match is None:
            raise ValueError(f"invalid decimal coin expression: {text}")
        amount_text, denom = match.groups()
        _, _, fraction = amount_text.partition(".")
        if len(fraction) > _MAX_DECIMALS:
            raise ValueError(f"too much precision in {amount_text}")
        return cls(denom, int(Decimal(amount_text)))

    def __str__(self) -> str:
        return f"{self.amount}{self.denom}"


@dataclass(frozen=True)
class DecCoin:
    """A decimal amount of a single denomination."""

    denom: str = ""
    amount: Decimal = Decimal(0)

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", Decimal(self.amount))

    def truncate(self) -> Coin:
        """Drop the fractional part and return an integer coin."""
        return Coin(self.denom, int(self.amount))


@dataclass
class ValidatorSetting:
    """Share of compounded rewards sent to one validator."""

    validator_address: str = ""
    percent_to_compound: int = 0


@dataclass
class CompoundSetting:
    """A delegator's compounding instructions."""

    delegator: str = ""
    validator_setting: list[ValidatorSetting] = field(default_factory=list)
    amount_to_remain: Coin = field(default_factory=Coin)
    frequency: int = 0


@dataclass
class PreviousCompound:
    """Block height at which a delegator last compounded."""

    delegator: str = ""
    block_height: int = 0


@dataclass
class Params:
    """Module parameters."""

    number_of_compounds_per_block: int = 0
    minimum_compound_frequency: int = 0
    compound_module_enabled: bool = False


@dataclass
class GenesisState:
    """Module state as imported and exported at genesis."""

    params: Params = field(default_factory=Params)
    compound_setting_list: list[CompoundSetting] = field(default_factory=list)
    previous_compound_list: list[PreviousCompound] = field(default_factory=list)


@dataclass
class DelegationReward:
    """Outstanding rewards of one delegation."""

    validator_address: str = ""
    reward: list[DecCoin] = field(default_factory=list)


@dataclass
class StakingCompoundAction:
    """One delegation to perform while compounding."""

    validator_address: str = ""
    balance: Coin = field(default_factory=Coin)
    delegator: str = ""


@dataclass
class Context:
    """Execution context: the current block height, store and logger."""

    block_height: int = 0
    store: KVStore = field(default_factory=KVStore)
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("autocompound"))