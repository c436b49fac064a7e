from dataclasses import dataclass

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from tokenpools.errors import TokenError, VaultsError, VaultsErrorCode
from tokenpools.events import DepositEvent, WithdrawEvent
from tokenpools.seeds import (
    SHARES_SEED,
    VAULT_SEED,
    VAULT_TOKEN_ACCOUNT_SEED,
    Pubkey,
    find_program_address,
)
from tokenpools.token import TokenLedger
from tokenpools.vaults import PROGRAM_ID, VaultProgram

DECIMALS = 6


@dataclass
class Env:
    ledger: TokenLedger
    program: VaultProgram
    mint_authority: Pubkey
    underlying: Pubkey
    authority: Pubkey
    vault: Pubkey
    shares_mint: Pubkey
    vault_token_account: Pubkey


@dataclass
class User:
    key: Pubkey
    tokens: Pubkey
    shares: Pubkey


def _make_env():
    ledger = TokenLedger()
    program = VaultProgram(ledger)
    mint_authority = Pubkey.new_unique()
    underlying = Pubkey.new_unique()
    ledger.create_mint(underlying, DECIMALS, mint_authority)
    authority = Pubkey.new_unique()
    vault = program.initialize_vault(authority, underlying)
    state = program.vault(vault)
    return Env(
        ledger, program, mint_authority, underlying, authority, vault,
        state.shares_mint, state.vault_token_account,
    )


def _new_user(env, funds):
    key = Pubkey.new_unique()
    tokens = Pubkey.new_unique()
    shares = Pubkey.new_unique()
    env.ledger.create_account(tokens, env.underlying, key)
    env.ledger.create_account(shares, env.shares_mint, key)
    if funds:
        env.ledger.mint_to(env.underlying, tokens, env.mint_authority, funds)
    return User(key, tokens, shares)


def _deposit(env, user, amount):
    return env.program.deposit(
        env.vault, user.key, env.underlying, env.shares_mint, user.tokens, user.shares, amount
    )


def _withdraw(env, user, amount):
    return env.program.withdraw(
        env.vault, user.key, env.underlying, env.shares_mint, user.tokens, user.shares, amount
    )


@pytest.fixture
def env():
    return _make_env()


def test_default_program_id():
    program = VaultProgram(TokenLedger())
    assert program.program_id == PROGRAM_ID
    assert str(PROGRAM_ID) == "8VKhpNxnGM4Sh2tfMcbvaZu7AFsrLSNSSrE8KXyzsa7f"


def test_initialize_vault_records_state(env):
    state = env.program.vault(env.vault)
    expected_vault, vault_bump = find_program_address(
        [VAULT_SEED, bytes(env.authority), bytes(env.underlying)], PROGRAM_ID
    )
    shares_mint, shares_bump = find_program_address([SHARES_SEED, bytes(env.vault)], PROGRAM_ID)
    token_account, token_bump = find_program_address(
        [VAULT_TOKEN_ACCOUNT_SEED, bytes(env.vault)], PROGRAM_ID
    )
    assert env.vault == expected_vault
    assert state.underlying_mint == env.underlying
    assert state.authority == env.authority
    assert state.shares_mint == shares_mint
    assert state.vault_token_account == token_account
    assert (state.vault_bump, state.shares_mint_bump, state.vault_token_account_bump) == (
        vault_bump, shares_bump, token_bump,
    )


def test_initialize_vault_creates_mint_and_account(env):
    mint = env.ledger.mint(env.shares_mint)
    assert mint.decimals == DECIMALS
    assert mint.mint_authority == env.vault
    assert mint.freeze_authority == env.vault
    assert mint.supply == 0
    account = env.ledger.account(env.vault_token_account)
    assert account.owner == env.vault
    assert account.mint == env.underlying
    assert account.amount == 0


def test_initialize_vault_twice_fails(env):
    with pytest.raises(ValueError):
        env.program.initialize_vault(env.authority, env.underlying)


def test_initialize_vault_unknown_mint(env):
    with pytest.raises(TokenError):
        env.program.initialize_vault(env.authority, Pubkey.new_unique())


def test_unknown_vault(env):
    with pytest.raises(KeyError):
        env.program.vault(Pubkey.new_unique())


def test_first_deposit_is_one_to_one(env):
    user = _new_user(env, 5000)
    event = _deposit(env, user, 1000)
    assert event == DepositEvent(vault=env.vault, user=user.key, tokens_in=1000, shares_out=1000)
    assert env.ledger.account(user.shares).amount == 1000
    assert env.ledger.account(user.tokens).amount == 4000
    assert env.ledger.account(env.vault_token_account).amount == 1000
    assert env.ledger.mint(env.shares_mint).supply == 1000


def test_deposit_after_donation_is_proportional(env):
    first = _new_user(env, 1000)
    _deposit(env, first, 1000)
    donor = _new_user(env, 1000)
    env.ledger.transfer_checked(
        donor.tokens, env.underlying, env.vault_token_account, donor.key, 1000, DECIMALS
    )
    second = _new_user(env, 500)
    event = _deposit(env, second, 500)
    assert event.shares_out == 250
    assert env.ledger.mint(env.shares_mint).supply == 1250


def test_withdraw_after_donation_returns_share_of_balance(env):
    user = _new_user(env, 1000)
    _deposit(env, user, 1000)
    donor = _new_user(env, 1000)
    env.ledger.transfer_checked(
        donor.tokens, env.underlying, env.vault_token_account, donor.key, 1000, DECIMALS
    )
    event = _withdraw(env, user, 500)
    assert event == WithdrawEvent(vault=env.vault, user=user.key, shares_in=500, tokens_out=1000)
    assert env.ledger.account(env.vault_token_account).amount == 1000
    assert env.ledger.account(user.shares).amount == 500


def test_withdraw_everything(env):
    user = _new_user(env, 3000)
    _deposit(env, user, 3000)
    event = _withdraw(env, user, 3000)
    assert event.tokens_out == 3000
    assert env.ledger.account(user.tokens).amount == 3000
    assert env.ledger.account(env.vault_token_account).amount == 0
    assert env.ledger.mint(env.shares_mint).supply == 0


def test_deposit_wrong_shares_mint(env):
    user = _new_user(env, 100)
    with pytest.raises(VaultsError) as info:
        env.program.deposit(
            env.vault, user.key, env.underlying, env.underlying, user.tokens, user.shares, 10
        )
    assert info.value.code == VaultsErrorCode.INVALID_SHARES_MINT


def test_deposit_wrong_underlying_mint(env):
    user = _new_user(env, 100)
    other = Pubkey.new_unique()
    env.ledger.create_mint(other, DECIMALS, env.mint_authority)
    with pytest.raises(VaultsError) as info:
        env.program.deposit(
            env.vault, user.key, other, env.shares_mint, user.tokens, user.shares, 10
        )
    assert info.value.code == VaultsErrorCode.INVALID_UNDERLYING_MINT


def test_withdraw_wrong_shares_mint(env):
    user = _new_user(env, 100)
    _deposit(env, user, 100)
    with pytest.raises(VaultsError) as info:
        env.program.withdraw(
            env.vault, user.key, env.underlying, env.underlying, user.tokens, user.shares, 10
        )
    assert info.value.code == VaultsErrorCode.INVALID_SHARES_MINT


def test_deposit_requires_account_owner(env):
    user = _new_user(env, 100)
    stranger = Pubkey.new_unique()
    with pytest.raises(TokenError):
        env.program.deposit(
            env.vault, stranger, env.underlying, env.shares_mint, user.tokens, user.shares, 10
        )
    assert env.ledger.account(user.tokens).amount == 100


def test_deposit_insufficient_funds_changes_nothing(env):
    user = _new_user(env, 100)
    with pytest.raises(TokenError):
        _deposit(env, user, 101)
    assert env.ledger.account(user.tokens).amount == 100
    assert env.ledger.account(user.shares).amount == 0
    assert env.ledger.mint(env.shares_mint).supply == 0


def test_withdraw_more_than_held_changes_nothing(env):
    user = _new_user(env, 100)
    _deposit(env, user, 100)
    with pytest.raises(TokenError):
        _withdraw(env, user, 101)
    assert env.ledger.account(user.shares).amount == 100
    assert env.ledger.account(env.vault_token_account).amount == 100
    assert env.ledger.mint(env.shares_mint).supply == 100


def test_withdraw_zero_from_empty_vault_fails_and_rolls_back(env):
    user = _new_user(env, 0)
    with pytest.raises(ZeroDivisionError):
        _withdraw(env, user, 0)
    assert env.ledger.mint(env.shares_mint).supply == 0


def test_deposit_rejects_negative_amount(env):
    user = _new_user(env, 100)
    with pytest.raises(ValueError):
        _deposit(env, user, -1)


@settings(max_examples=40, deadline=None)
@given(
    first=st.integers(min_value=1, max_value=10**9),
    donation=st.integers(min_value=0, max_value=10**9),
    second=st.integers(min_value=1, max_value=10**9),
)
def test_tokens_are_conserved_and_never_gained(first, donation, second):
    env = _make_env()
    alice = _new_user(env, first)
    bob = _new_user(env, second)
    _deposit(env, alice, first)
    if donation:
        donor = _new_user(env, donation)
        env.ledger.transfer_checked(
            donor.tokens, env.underlying, env.vault_token_account, donor.key, donation, DECIMALS
        )
    _deposit(env, bob, second)
    bob_shares = env.ledger.account(bob.shares).amount
    out = _withdraw(env, bob, bob_shares).tokens_out
    assert out <= second
    total = (
        env.ledger.account(alice.tokens).amount
        + env.ledger.account(bob.tokens).amount
        + env.ledger.account(env.vault_token_account).amount
    )
    assert total == first + second + donation
    assert env.ledger.mint(env.shares_mint).supply == env.ledger.account(alice.shares).amount