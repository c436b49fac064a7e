"""Errors raised by the liquidity-pool, vault and token programs."""

import enum


class LpsErrorCode(enum.IntEnum):
    """Error codes of the liquidity-pool program."""

    INVALID_MINT_A = 6000
    INVALID_MINT_B = 6001
    INVALID_LP_MINT = 6002
    ZERO_SWAP_AMOUNT = 6003
    ZERO_LIQUIDITY_AMOUNT = 6004
    INSUFFICIENT_OUTPUT_AMOUNT = 6005
    IDENTICAL_MINTS = 6006
    INVALID_FEE_BPS = 6007

    @property
    def message(self) -> str:
        return _LPS_MESSAGES[self]


_LPS_MESSAGES = {
    LpsErrorCode.INVALID_MINT_A: "Invalid mint_a for pool",
    LpsErrorCode.INVALID_MINT_B: "Invalid mint_b for pool",
    LpsErrorCode.INVALID_LP_MINT: "Invalid lp_mint for pool",
    LpsErrorCode.ZERO_SWAP_AMOUNT: "Swap input amount must be greater than zero",
    LpsErrorCode.ZERO_LIQUIDITY_AMOUNT: "Liquidity amount must be greater than zero",
    LpsErrorCode.INSUFFICIENT_OUTPUT_AMOUNT: "Insufficient output amount",
    LpsErrorCode.IDENTICAL_MINTS: "Mint A and Mint B must be different",
    LpsErrorCode.INVALID_FEE_BPS: "Fee basis points must be less than 10000",
}


class VaultsErrorCode(enum.IntEnum):
    """Error codes of the vault program."""

    INVALID_AUTHORITY = 6000
    INVALID_SHARES_MINT = 6001
    INVALID_UNDERLYING_MINT = 6002

    @property
    def message(self) -> str:
        return _VAULTS_MESSAGES[self]


_VAULTS_MESSAGES = {
    VaultsErrorCode.INVALID_AUTHORITY: "Authority provided is not the authority of this vault",
    VaultsErrorCode.INVALID_SHARES_MINT: "Invalid shares_mint for vault",
    VaultsErrorCode.INVALID_UNDERLYING_MINT: "Invalid underlying_mint for vault",
}


class LpsError(Exception):
    """A liquidity-pool instruction was rejected."""

    def __init__(self, code):
        self.code = LpsErrorCode(code)
        super().__init__(self.code.message)


class VaultsError(Exception):
    """A vault instruction was rejected."""

    def __init__(self, code):
        self.code = VaultsErrorCode(code)
        super().__init__(self.code.message)


class TokenError(Exception):
    """The token ledger refused a mint, burn or transfer."""