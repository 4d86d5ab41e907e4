# autocompound

A self-contained library for automatically compounding staking rewards. It has no
dependencies beyond the standard library.

Each delegator registers a `CompoundSetting`. The setting lists the validators to restake
into, the percentage for each one, an amount to keep in the wallet, and how often to
compound, counted in blocks. On each call to `Keeper.run_compounding` the keeper checks
which settings are due. For each due setting it claims the outstanding rewards, adds any
wallet balance above the amount to keep, and delegates the total according to the
percentages. It then records the block height in a `PreviousCompound` entry.

## Installation

```
pip install autocompound
```

To run the test suite:

```
pip install "autocompound[test]"
pytest
```

## Example

```python
from autocompound.addresses import bech32_encode
from autocompound.keeper import BankKeeper, DistrKeeper, Keeper, StakingKeeper
from autocompound.models import Coin, Context, DecCoin, Params, ValidatorSetting
from autocompound.msg_server import MsgCreateCompoundSetting, MsgServer

delegator = bech32_encode("cosmos", bytes(20))
validator = bech32_encode("cosmosvaloper", bytes([1]) * 20)

bank = BankKeeper()
staking = StakingKeeper(bank)
distr = DistrKeeper(bank, staking)
keeper = Keeper(bank, distr, staking)

ctx = Context(block_height=1)
keeper.set_params(ctx, Params(number_of_compounds_per_block=100,
                              minimum_compound_frequency=5,
                              compound_module_enabled=True))

staking.add_validator(validator)
bank.set_balance(delegator, Coin("stake", 1_000))
staking.delegate(ctx, delegator, 500, validator)        # wallet now holds 500
distr.allocate_rewards(delegator, validator, [DecCoin("stake", "120.7")])

MsgServer(keeper).create_compound_setting(ctx, MsgCreateCompoundSetting(
    delegator=delegator,
    validator_setting=[ValidatorSetting(validator, 100)],
    amount_to_remain=Coin("stake", 400),
    frequency=10,
))

keeper.run_compounding(ctx)
# 120 of rewards plus 100 of wallet balance above 400 are delegated.
assert staking.get_delegation(ctx, delegator, validator) == 720
assert bank.get_balance(ctx, delegator, "stake").amount == 400
assert keeper.get_previous_compound(ctx, delegator).block_height == 1
```

## Modules

- `autocompound.models` holds the value types: `Coin` (with `add`, `sub`, `is_valid` and
  `parse`), `DecCoin` (with `truncate`), `ValidatorSetting`, `CompoundSetting`,
  `PreviousCompound`, `Params`, `GenesisState`, `DelegationReward`, `StakingCompoundAction`
  and the block `Context`, which carries the block height, the store and a logger. The bond
  denomination is `stake`.
- `autocompound.addresses` covers bech32 with `bech32_encode` and `bech32_decode`, and
  parses addresses with `acc_address_from_bech32` (prefix `cosmos`) and
  `val_address_from_bech32` (prefix `cosmosvaloper`).
- `autocompound.store` provides `KVStore`, an ordered in-memory store that copies values in
  and out, and `paginate`, which reads a page by offset or by start key through
  `PageRequest` and `PageResponse`. A limit of 0 means a page of 100 with the total counted.
  Giving both an offset and a key raises `InvalidRequestError`.
- `autocompound.keeper` provides the `Keeper`, which stores settings, history and params in
  the context's store and runs the compounding logic. It works with `BankKeeper`,
  `StakingKeeper` and `DistrKeeper`, which are simple in-memory implementations of balances,
  validators and delegations, and accrued rewards and withdraw addresses.
- `autocompound.msg_server` defines `MsgServer`, which handles `MsgCreateCompoundSetting`,
  `MsgUpdateCompoundSetting` and `MsgDeleteCompoundSetting`.
- `autocompound.query` defines `QueryServer`, which answers single lookups, paginated lookups
  and params lookups.
- `autocompound.genesis` provides `init_genesis` and `export_genesis`.
- `autocompound.errors` defines the exception hierarchy, rooted at `CompoundError`.

## Behaviour

Amounts per validator are computed as `amount * percent // 100`, truncated. When the
percentages add up to exactly 100, any remainder left by truncation goes to the first
validator. Only rewards in the bond denomination count, with their fractional part dropped.
The wallet balance counts only above a valid `amount_to_remain` of the same denomination.

While claiming rewards, a delegator's withdraw address is set to the delegator itself. It is
restored afterwards.

Validator settings are checked before they are stored:

- the list must be given (not `None`);
- each percentage must be between 1 and 100;
- the running total must stay between 1 and 100;
- each address must be a valid validator address (otherwise `AddressError`), and the
  validator must exist;
- a validator may appear only once.

A frequency below the `minimum_compound_frequency` parameter is raised to that minimum.
`Keeper.get_params` raises `LookupError` when no params have been set.

Failures raise exceptions:

- `InvalidRequestError`, `KeyNotFoundError` and `UnauthorizedError` for messages;
- `InvalidArgumentError`, `NotFoundError` and `InternalError` for queries.

Each error has a numeric `code`.

`run_compounding` stops after `number_of_compounds_per_block` compounds. When compounding one
delegator fails, the failure is logged and the run moves on to the next delegator. The run
then logs how many compounds happened.

## What this package does not do

The package is a library only. It has:

- no command-line tool;
- no network node, transaction signing or broadcasting;
- no persistent storage;
- no wire encoding of messages.

All state lives in the in-memory `KVStore` of the `Context` you pass in. Balances,
delegations and rewards come from the bundled in-memory keepers, so you set them up yourself.