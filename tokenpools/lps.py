"""Constant-product liquidity pools with LP tokens and a swap fee."""

import math
from contextlib import contextmanager

from .errors import LpsError, LpsErrorCode, TokenError
from .events import AddLiquidityEvent, RemoveLiquidityEvent, SwapEvent
from .seeds import (
    LP_MINT_SEED,
    POOL_SEED,
    POOL_TOKEN_ACCOUNT_A_SEED,
    POOL_TOKEN_ACCOUNT_B_SEED,
    Pubkey,
    find_program_address,
)
from .state import LiquidityPool

PROGRAM_ID = Pubkey.from_string("31fPCYPHVvggaGvfyWhiUASY4LDwefT5ZEhUtCHN4nC8")
LP_MINT_DECIMALS = 9
FEE_BPS_DENOMINATOR = 10_000

_U64_MAX = 2**64 - 1
_U16_MAX = 2**16 - 1


def integer_sqrt(value):
    """Return the largest integer whose square does not exceed ``value``."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError("integer_sqrt takes an integer")
    if value < 0:
        raise ValueError("integer_sqrt takes a non-negative integer")
    return math.isqrt(value)


def _require_int(name, value, maximum):
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer")
    if not 0 <= value <= maximum:
        raise ValueError(f"{name} is out of range")


def _to_u64(value):
    if value > _U64_MAX:
        raise OverflowError("result does not fit in a u64")
    return value


@contextmanager
def _rollback(ledger, accounts=(), mints=()):
    """Restore the balances and supplies touched by a failed instruction."""
    saved_accounts = [(ledger.account(address), ledger.account(address).amount) for address in accounts]
    saved_mints = [(ledger.mint(address), ledger.mint(address).supply) for address in mints]
    try:
        yield
    except BaseException:
        for account, amount in saved_accounts:
            account.amount = amount
        for mint, supply in saved_mints:
            mint.supply = supply
        raise


class LiquidityPoolProgram:
    """Creates pools of two mints and runs liquidity and swap instructions on them."""

    def __init__(self, ledger, program_id=None):
        self.ledger = ledger
        self.program_id = PROGRAM_ID if program_id is None else program_id
        self._pools: dict[Pubkey, bytes] = {}

    def pool(self, address):
        """Return the state of the pool at ``address``."""
        try:
            data = self._pools[address]
        except KeyError:
            raise KeyError(f"pool {address} not found") from None
        return LiquidityPool.unpack(data)

    def _require_owner(self, address, user):
        if self.ledger.account(address).owner != user:
            raise TokenError(f"token account {address} is not owned by {user}")

    def _load(self, pool, mint_a, mint_b, lp_mint=None):
        state = self.pool(pool)
        if state.mint_a != mint_a:
            raise LpsError(LpsErrorCode.INVALID_MINT_A)
        if state.mint_b != mint_b:
            raise LpsError(LpsErrorCode.INVALID_MINT_B)
        if lp_mint is not None and state.lp_mint != lp_mint:
            raise LpsError(LpsErrorCode.INVALID_LP_MINT)
        return state

    def initialize_pool(self, authority, mint_a, mint_b, fee_bps):
        """Create a pool for two mints and return its address."""
        self.ledger.mint(mint_a)
        self.ledger.mint(mint_b)
        _require_int("fee_bps", fee_bps, _U16_MAX)
        if mint_a == mint_b:
            raise LpsError(LpsErrorCode.IDENTICAL_MINTS)
        if fee_bps >= FEE_BPS_DENOMINATOR:
            raise LpsError(LpsErrorCode.INVALID_FEE_BPS)

        pool, pool_bump = find_program_address(
            [POOL_SEED, bytes(mint_a), bytes(mint_b)], self.program_id
        )
        if pool in self._pools:
            raise ValueError(f"account {pool} is already in use")
        lp_mint, lp_mint_bump = find_program_address([LP_MINT_SEED, bytes(pool)], self.program_id)
        account_a, account_a_bump = find_program_address(
            [POOL_TOKEN_ACCOUNT_A_SEED, bytes(pool)], self.program_id
        )
        account_b, account_b_bump = find_program_address(
            [POOL_TOKEN_ACCOUNT_B_SEED, bytes(pool)], self.program_id
        )

        self.ledger.create_mint(lp_mint, LP_MINT_DECIMALS, pool, pool)
        self.ledger.create_account(account_a, mint_a, pool)
        self.ledger.create_account(account_b, mint_b, pool)

        state = LiquidityPool(
            mint_a=mint_a,
            mint_b=mint_b,
            lp_mint=lp_mint,
            pool_token_account_a=account_a,
            pool_token_account_b=account_b,
            authority=authority,
            fee_bps=fee_bps,
            pool_bump=pool_bump,
            lp_mint_bump=lp_mint_bump,
            pool_token_account_a_bump=account_a_bump,
            pool_token_account_b_bump=account_b_bump,
        )
        self._pools[pool] = state.pack()
        return pool

    def add_liquidity(
        self,
        pool,
        user,
        mint_a,
        mint_b,
        lp_mint,
        user_token_account_a,
        user_token_account_b,
        user_lp_token_account,
        amount_a,
        amount_b,
    ):
        """Deposit both tokens and mint LP tokens to the user."""
        for address in (user_token_account_a, user_token_account_b, user_lp_token_account):
            self._require_owner(address, user)
        state = self._load(pool, mint_a, mint_b, lp_mint)
        _require_int("amount_a", amount_a, _U64_MAX)
        _require_int("amount_b", amount_b, _U64_MAX)
        if amount_a == 0 or amount_b == 0:
            raise LpsError(LpsErrorCode.ZERO_LIQUIDITY_AMOUNT)

        ledger = self.ledger
        reserve_a = ledger.account(state.pool_token_account_a).amount
        reserve_b = ledger.account(state.pool_token_account_b).amount
        lp_supply = ledger.mint(lp_mint).supply
        decimals_a = ledger.mint(mint_a).decimals
        decimals_b = ledger.mint(mint_b).decimals

        touched = (
            user_token_account_a,
            user_token_account_b,
            user_lp_token_account,
            state.pool_token_account_a,
            state.pool_token_account_b,
        )
        with _rollback(ledger, accounts=touched, mints=(lp_mint,)):
            ledger.transfer_checked(
                user_token_account_a, mint_a, state.pool_token_account_a, user, amount_a, decimals_a
            )
            ledger.transfer_checked(
                user_token_account_b, mint_b, state.pool_token_account_b, user, amount_b, decimals_b
            )
            if lp_supply == 0:
                lp_tokens = _to_u64(integer_sqrt(amount_a * amount_b))
            else:
                lp_for_a = amount_a * lp_supply // reserve_a
                lp_for_b = amount_b * lp_supply // reserve_b
                lp_tokens = _to_u64(min(lp_for_a, lp_for_b))
            ledger.mint_to(lp_mint, user_lp_token_account, pool, lp_tokens)

        return AddLiquidityEvent(
            pool=pool,
            user=user,
            amount_a=amount_a,
            amount_b=amount_b,
            lp_tokens_minted=lp_tokens,
        )

    def remove_liquidity(
        self,
        pool,
        user,
        mint_a,
        mint_b,
        lp_mint,
        user_token_account_a,
        user_token_account_b,
        user_lp_token_account,
        lp_amount,
    ):
        """Burn LP tokens and return the user's share of both reserves."""
        for address in (user_token_account_a, user_token_account_b, user_lp_token_account):
            self._require_owner(address, user)
        state = self._load(pool, mint_a, mint_b, lp_mint)
        _require_int("lp_amount", lp_amount, _U64_MAX)
        if lp_amount == 0:
            raise LpsError(LpsErrorCode.ZERO_LIQUIDITY_AMOUNT)

        ledger = self.ledger
        reserve_a = ledger.account(state.pool_token_account_a).amount
        reserve_b = ledger.account(state.pool_token_account_b).amount
        lp_supply = ledger.mint(lp_mint).supply

        amount_a = _to_u64(lp_amount * reserve_a // lp_supply)
        amount_b = _to_u64(lp_amount * reserve_b // lp_supply)

        touched = (
            user_token_account_a,
            user_token_account_b,
            user_lp_token_account,
            state.pool_token_account_a,
            state.pool_token_account_b,
        )
        with _rollback(ledger, accounts=touched, mints=(lp_mint,)):
            ledger.burn(user_lp_token_account, lp_mint, user, lp_amount)
            ledger.transfer_checked(
                state.pool_token_account_a,
                mint_a,
                user_token_account_a,
                pool,
                amount_a,
                ledger.mint(mint_a).decimals,
            )
            ledger.transfer_checked(
                state.pool_token_account_b,
                mint_b,
                user_token_account_b,
                pool,
                amount_b,
                ledger.mint(mint_b).decimals,
            )

        return RemoveLiquidityEvent(
            pool=pool,
            user=user,
            lp_tokens_burned=lp_amount,
            amount_a=amount_a,
            amount_b=amount_b,
        )

    def swap(
        self,
        pool,
        user,
        mint_a,
        mint_b,
        user_token_account_in,
        user_token_account_out,
        amount_in,
        minimum_amount_out,
    ):
        """Trade one token of the pool for the other along the constant-product curve."""
        self._require_owner(user_token_account_in, user)
        self._require_owner(user_token_account_out, user)
        state = self._load(pool, mint_a, mint_b)
        _require_int("amount_in", amount_in, _U64_MAX)
        _require_int("minimum_amount_out", minimum_amount_out, _U64_MAX)
        if amount_in == 0:
            raise LpsError(LpsErrorCode.ZERO_SWAP_AMOUNT)

        ledger = self.ledger
        reserve_a = ledger.account(state.pool_token_account_a).amount
        reserve_b = ledger.account(state.pool_token_account_b).amount
        a_to_b = ledger.account(user_token_account_in).mint == mint_a

        if a_to_b:
            reserve_in, reserve_out = reserve_a, reserve_b
            pool_in, pool_out = state.pool_token_account_a, state.pool_token_account_b
            mint_in, mint_out = mint_a, mint_b
        else:
            reserve_in, reserve_out = reserve_b, reserve_a
            pool_in, pool_out = state.pool_token_account_b, state.pool_token_account_a
            mint_in, mint_out = mint_b, mint_a

        fee = amount_in * state.fee_bps // FEE_BPS_DENOMINATOR
        amount_in_after_fee = amount_in - fee
        amount_out = _to_u64(reserve_out * amount_in_after_fee // (reserve_in + amount_in_after_fee))

        if amount_out < minimum_amount_out:
            raise LpsError(LpsErrorCode.INSUFFICIENT_OUTPUT_AMOUNT)

        touched = (user_token_account_in, user_token_account_out, pool_in, pool_out)
        with _rollback(ledger, accounts=touched):
            ledger.transfer_checked(
                user_token_account_in, mint_in, pool_in, user, amount_in, ledger.mint(mint_in).decimals
            )
            ledger.transfer_checked(
                pool_out, mint_out, user_token_account_out, pool, amount_out, ledger.mint(mint_out).decimals
            )

        return SwapEvent(
            pool=pool,
            user=user,
            amount_in=amount_in,
            amount_out=amount_out,
            fee=_to_u64(fee),
        )