"""On-chain account records of the liquidity-pool and vault programs."""

import hashlib
import struct
from dataclasses import dataclass, fields
from typing import ClassVar

from .seeds import Pubkey


def _discriminator(name: str) -> bytes:
    return hashlib.sha256(f"account:{name}".encode()).digest()[:8]


def _pack(record, layout: struct.Struct, discriminator: bytes) -> bytes:
    values = [
        bytes(value) if isinstance(value, Pubkey) else value
        for value in (getattr(record, field.name) for field in fields(record))
    ]
    try:
        body = layout.pack(*values)
    except struct.error as exc:
        raise ValueError(f"cannot encode {type(record).__name__}: {exc}") from exc
    return discriminator + body


def _unpack(cls, data, layout: struct.Struct, discriminator: bytes, size: int):
    data = bytes(data)
    if len(data) < size:
        raise ValueError(f"{cls.__name__} needs {size} bytes, got {len(data)}")
    if data[: len(discriminator)] != discriminator:
        raise ValueError(f"data is not a {cls.__name__} account")
    values = layout.unpack_from(data, len(discriminator))
    return cls(*(Pubkey(value) if isinstance(value, bytes) else value for value in values))


@dataclass
class LiquidityPool:
    """State of one constant-product pool."""

    mint_a: Pubkey
    mint_b: Pubkey
    lp_mint: Pubkey
    pool_token_account_a: Pubkey
    pool_token_account_b: Pubkey
    authority: Pubkey
    fee_bps: int
    pool_bump: int
    lp_mint_bump: int
    pool_token_account_a_bump: int
    pool_token_account_b_bump: int

    SIZE: ClassVar[int] = 8 + 32 + 32 + 32 + 32 + 32 + 32 + 2 + 1 + 1 + 1 + 1
    DISCRIMINATOR: ClassVar[bytes] = _discriminator("LiquidityPool")
    _LAYOUT: ClassVar[struct.Struct] = struct.Struct("<32s32s32s32s32s32sHBBBB")

    def pack(self) -> bytes:
        """Serialise the pool with its account discriminator."""
        return _pack(self, self._LAYOUT, self.DISCRIMINATOR)

    @classmethod
    def unpack(cls, data):
        """Read a pool from account data."""
        return _unpack(cls, data, cls._LAYOUT, cls.DISCRIMINATOR, cls.SIZE)


@dataclass
class Vault:
    """State of one share-issuing vault."""

    underlying_mint: Pubkey
    shares_mint: Pubkey
    authority: Pubkey
    vault_token_account: Pubkey
    shares_mint_bump: int
    vault_bump: int
    vault_token_account_bump: int

    SIZE: ClassVar[int] = 8 + 32 + 32 + 32 + 32 + 1 + 1 + 1
    DISCRIMINATOR: ClassVar[bytes] = _discriminator("Vault")
    _LAYOUT: ClassVar[struct.Struct] = struct.Struct("<32s32s32s32sBBB")

    def pack(self) -> bytes:
        """Serialise the vault with its account discriminator."""
        return _pack(self, self._LAYOUT, self.DISCRIMINATOR)

    @classmethod
    def unpack(cls, data):
        """Read a vault from account data."""
        return _unpack(cls, data, cls._LAYOUT, cls.DISCRIMINATOR, cls.SIZE)