import pytest

from autocompound.addresses import ACCOUNT_PREFIX, VALIDATOR_PREFIX, bech32_encode
from autocompound.errors import AddressError, InvalidRequestError, KeyNotFoundError
from autocompound.keeper import BankKeeper, DistrKeeper, Keeper, StakingKeeper
from autocompound.models import Coin, CompoundSetting, Context, Params, ValidatorSetting
from autocompound.msg_server import (
    MsgCreateCompoundSetting,
    MsgDeleteCompoundSetting,
    MsgServer,
    MsgUpdateCompoundSetting,
)

VALIDATOR = bech32_encode(VALIDATOR_PREFIX, bytes(range(1, 21)))
OTHER_VALIDATOR = bech32_encode(VALIDATOR_PREFIX, bytes(range(21, 41)))
UNKNOWN_VALIDATOR = bech32_encode(VALIDATOR_PREFIX, bytes(20))
ACCOUNT = bech32_encode(ACCOUNT_PREFIX, bytes(range(1, 21)))


def _make_keeper():
    bank = BankKeeper()
    staking = StakingKeeper(bank)
    distr = DistrKeeper(bank, staking)
    staking.add_validator(VALIDATOR)
    staking.add_validator(OTHER_VALIDATOR)
    return Keeper(bank, distr, staking)


@pytest.fixture
def env():
    keeper = _make_keeper()
    ctx = Context(block_height=1)
    keeper.set_params(ctx, Params(100, 5, True))
    return MsgServer(keeper), ctx


def _settings(*pairs):
    return [ValidatorSetting(address, percent) for address, percent in pairs]


def test_server_wraps_keeper():
    keeper = _make_keeper()
    server = MsgServer(keeper)
    assert server.keeper is keeper


def test_create(env):
    server, ctx = env
    for i in range(5):
        delegator = str(i)
        msg = MsgCreateCompoundSetting(delegator=delegator, validator_setting=_settings((VALIDATOR, 100)))
        server.create_compound_setting(ctx, msg)
        stored = server.keeper.get_compound_setting(ctx, delegator)
        assert stored is not None
        assert stored.delegator == delegator
        assert stored.validator_setting == _settings((VALIDATOR, 100))


def test_create_returns_stored_setting(env):
    server, ctx = env
    msg = MsgCreateCompoundSetting(
        delegator="A",
        validator_setting=_settings((VALIDATOR, 60), (OTHER_VALIDATOR, 40)),
        amount_to_remain=Coin("stake", 10),
        frequency=111,
    )
    result = server.create_compound_setting(ctx, msg)
    expected = CompoundSetting("A", _settings((VALIDATOR, 60), (OTHER_VALIDATOR, 40)), Coin("stake", 10), 111)
    assert result == expected
    assert server.keeper.get_compound_setting(ctx, "A") == expected


def test_create_twice_is_rejected(env):
    server, ctx = env
    msg = MsgCreateCompoundSetting(delegator="A", validator_setting=_settings((VALIDATOR, 50)))
    server.create_compound_setting(ctx, msg)
    with pytest.raises(InvalidRequestError) as exc_info:
        server.create_compound_setting(ctx, msg)
    assert exc_info.value.message == "compoundSettings already set, do an update instead"


@pytest.mark.parametrize("requested, stored", [(1, 5), (10, 10), (700, 700)])
def test_create_clamps_frequency(env, requested, stored):
    server, ctx = env
    msg = MsgCreateCompoundSetting(
        delegator="A", validator_setting=_settings((VALIDATOR, 50)), frequency=requested
    )
    server.create_compound_setting(ctx, msg)
    assert server.keeper.get_compound_setting(ctx, "A").frequency == stored


@pytest.mark.parametrize(
    "desc, update_settings, error",
    [
        ("Completed", [(VALIDATOR, 50)], None),
        ("KeyNotFound", [(VALIDATOR, 50)], KeyNotFoundError),
        ("InvalidValidatorSettingsOver", [(VALIDATOR, 150)], InvalidRequestError),
        ("InvalidValidatorSettingsUnder", [(VALIDATOR, 0)], InvalidRequestError),
        ("InvalidValidatorSettingsTotalOver", [(VALIDATOR, 75), (VALIDATOR, 75)], InvalidRequestError),
    ],
)
def test_update(env, desc, update_settings, error):
    server, ctx = env
    delegator = "A"
    server.create_compound_setting(
        ctx, MsgCreateCompoundSetting(delegator=delegator, validator_setting=_settings((VALIDATOR, 75)))
    )
    if desc == "KeyNotFound":
        server.delete_compound_setting(ctx, MsgDeleteCompoundSetting(delegator=delegator))

    request = MsgUpdateCompoundSetting(delegator=delegator, validator_setting=_settings(*update_settings))
    if error is not None:
        with pytest.raises(error):
            server.update_compound_setting(ctx, request)
    else:
        server.update_compound_setting(ctx, request)
        stored = server.keeper.get_compound_setting(ctx, delegator)
        assert stored.delegator == delegator
        assert stored.validator_setting == _settings((VALIDATOR, 50))


def test_update_replaces_fields(env):
    server, ctx = env
    server.create_compound_setting(
        ctx,
        MsgCreateCompoundSetting(delegator="A", validator_setting=_settings((VALIDATOR, 75)), frequency=10),
    )
    server.update_compound_setting(
        ctx,
        MsgUpdateCompoundSetting(
            delegator="A",
            validator_setting=_settings((OTHER_VALIDATOR, 20)),
            amount_to_remain=Coin("stake", 3),
            frequency=2,
        ),
    )
    stored = server.keeper.get_compound_setting(ctx, "A")
    assert stored == CompoundSetting("A", _settings((OTHER_VALIDATOR, 20)), Coin("stake", 3), 5)


def test_update_total_over_message(env):
    server, ctx = env
    server.create_compound_setting(
        ctx, MsgCreateCompoundSetting(delegator="A", validator_setting=_settings((VALIDATOR, 75)))
    )
    with pytest.raises(InvalidRequestError) as exc_info:
        server.update_compound_setting(
            ctx,
            MsgUpdateCompoundSetting(delegator="A", validator_setting=_settings((VALIDATOR, 75), (VALIDATOR, 75))),
        )
    assert exc_info.value.message.startswith("total percentToCompound")


@pytest.mark.parametrize("desc, error", [("Completed", None), ("KeyNotFound", KeyNotFoundError)])
def test_delete(env, desc, error):
    server, ctx = env
    delegator = "A"
    server.create_compound_setting(
        ctx, MsgCreateCompoundSetting(delegator=delegator, validator_setting=_settings((VALIDATOR, 50)))
    )
    if desc == "KeyNotFound":
        server.delete_compound_setting(ctx, MsgDeleteCompoundSetting(delegator=delegator))

    request = MsgDeleteCompoundSetting(delegator=delegator)
    if error is not None:
        with pytest.raises(error):
            server.delete_compound_setting(ctx, request)
    else:
        server.delete_compound_setting(ctx, request)
        assert server.keeper.get_compound_setting(ctx, delegator) is None


def test_validate_rejects_missing_settings(env):
    server, ctx = env
    with pytest.raises(InvalidRequestError) as exc_info:
        server.validate_validator_settings(ctx, None)
    assert exc_info.value.message == "validatorSetting can not be empty"


def test_create_with_empty_settings_list_is_accepted(env):
    server, ctx = env
    server.create_compound_setting(ctx, MsgCreateCompoundSetting(delegator="A", validator_setting=[]))
    assert server.keeper.get_compound_setting(ctx, "A").validator_setting == []


def test_validate_rejects_unknown_validator(env):
    server, ctx = env
    with pytest.raises(InvalidRequestError) as exc_info:
        server.validate_validator_settings(ctx, _settings((UNKNOWN_VALIDATOR, 50)))
    assert exc_info.value.message == "can not find validator"


def test_validate_rejects_account_address(env):
    server, ctx = env
    with pytest.raises(AddressError):
        server.validate_validator_settings(ctx, _settings((ACCOUNT, 50)))


def test_validate_rejects_duplicate_validator(env):
    server, ctx = env
    with pytest.raises(InvalidRequestError) as exc_info:
        server.validate_validator_settings(ctx, _settings((VALIDATOR, 50), (VALIDATOR, 50)))
    assert exc_info.value.message == "validator address can not be found in another validator setting"


def test_create_with_two_validators(env):
    server, ctx = env
    server.create_compound_setting(
        ctx,
        MsgCreateCompoundSetting(delegator="A", validator_setting=_settings((VALIDATOR, 50), (OTHER_VALIDATOR, 50))),
    )
    stored = server.keeper.get_compound_setting(ctx, "A")
    assert [s.validator_address for s in stored.validator_setting] == [VALIDATOR, OTHER_VALIDATOR]