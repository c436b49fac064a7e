"""Events emitted by the liquidity-pool and vault programs."""

from dataclasses import dataclass, fields

from .seeds import Pubkey

_U64_MAX = 2**64 - 1


class _Event:
    def __post_init__(self):
        for field in fields(self):
            value = getattr(self, field.name)
            if isinstance(value, Pubkey):
                continue
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{field.name} must be an integer amount")
            if not 0 <= value <= _U64_MAX:
                raise ValueError(f"{field.name} is out of range for a u64 amount")


@dataclass(frozen=True)
class AddLiquidityEvent(_Event):
    pool: Pubkey
    user: Pubkey
    amount_a: int
    amount_b: int
    lp_tokens_minted: int


@dataclass(frozen=True)
class RemoveLiquidityEvent(_Event):
    pool: Pubkey
    user: Pubkey
    lp_tokens_burned: int
    amount_a: int
    amount_b: int


@dataclass(frozen=True)
class SwapEvent(_Event):
    pool: Pubkey
    user: Pubkey
    amount_in: int
    amount_out: int
    fee: int


@dataclass(frozen=True)
class DepositEvent(_Event):
    vault: Pubkey
    user: Pubkey
    tokens_in: int
    shares_out: int


@dataclass(frozen=True)
class WithdrawEvent(_Event):
    vault: Pubkey
    user: Pubkey
    shares_in: int
    tokens_out: int