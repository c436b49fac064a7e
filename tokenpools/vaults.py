"""Share-issuing vaults: deposit a token, receive shares, redeem shares for tokens."""

from .errors import TokenError, VaultsError, VaultsErrorCode
from .events import DepositEvent, WithdrawEvent
from .lps import _require_int, _rollback, _to_u64
from .seeds import (
    SHARES_SEED,
    VAULT_SEED,
    VAULT_TOKEN_ACCOUNT_SEED,
    Pubkey,
    find_program_address,
)
from .state import Vault

PROGRAM_ID = Pubkey.from_string("8VKhpNxnGM4Sh2tfMcbvaZu7AFsrLSNSSrE8KXyzsa7f")

_U64_MAX = 2**64 - 1


class VaultProgram:
    """Creates vaults over an underlying mint and runs deposits and withdrawals."""

    def __init__(self, ledger, program_id=None):
        self.ledger = ledger
        self.program_id = PROGRAM_ID if program_id is None else program_id
        self._vaults: dict[Pubkey, bytes] = {}

    def vault(self, address):
        """Return the state of the vault at ``address``."""
        try:
            data = self._vaults[address]
        except KeyError:
            raise KeyError(f"vault {address} not found") from None
        return Vault.unpack(data)

    def _require_owner(self, address, user):
        if self.ledger.account(address).owner != user:
            raise TokenError(f"token account {address} is not owned by {user}")

    def _load(self, vault, underlying_mint, shares_mint):
        state = self.vault(vault)
        if state.shares_mint != shares_mint:
            raise VaultsError(VaultsErrorCode.INVALID_SHARES_MINT)
        if state.underlying_mint != underlying_mint:
            raise VaultsError(VaultsErrorCode.INVALID_UNDERLYING_MINT)
        return state

    def initialize_vault(self, authority, underlying_mint):
        """Create a vault for ``underlying_mint`` owned by ``authority`` and return its address."""
        ledger = self.ledger
        decimals = ledger.mint(underlying_mint).decimals

        vault, vault_bump = find_program_address(
            [VAULT_SEED, bytes(authority), bytes(underlying_mint)], self.program_id
        )
        if vault in self._vaults:
            raise ValueError(f"account {vault} is already in use")
        shares_mint, shares_mint_bump = find_program_address(
            [SHARES_SEED, bytes(vault)], self.program_id
        )
        token_account, token_account_bump = find_program_address(
            [VAULT_TOKEN_ACCOUNT_SEED, bytes(vault)], self.program_id
        )

        ledger.create_mint(shares_mint, decimals, vault, vault)
        ledger.create_account(token_account, underlying_mint, vault)

        state = Vault(
            underlying_mint=underlying_mint,
            shares_mint=shares_mint,
            authority=authority,
            vault_token_account=token_account,
            shares_mint_bump=shares_mint_bump,
            vault_bump=vault_bump,
            vault_token_account_bump=token_account_bump,
        )
        self._vaults[vault] = state.pack()
        return vault

    def deposit(
        self,
        vault,
        user,
        underlying_mint,
        shares_mint,
        user_token_account,
        user_shares_token_account,
        amount,
    ):
        """Move tokens into the vault and mint shares to the user."""
        self._require_owner(user_token_account, user)
        self._require_owner(user_shares_token_account, user)
        state = self._load(vault, underlying_mint, shares_mint)
        _require_int("amount", amount, _U64_MAX)

        ledger = self.ledger
        shares_supply = ledger.mint(shares_mint).supply
        vault_balance = ledger.account(state.vault_token_account).amount
        decimals = ledger.mint(underlying_mint).decimals

        touched = (user_token_account, user_shares_token_account, state.vault_token_account)
        with _rollback(ledger, accounts=touched, mints=(shares_mint,)):
            ledger.transfer_checked(
                user_token_account, underlying_mint, state.vault_token_account, user, amount, decimals
            )
            if shares_supply == 0 or vault_balance == 0:
                shares = amount
            else:
                shares = _to_u64(amount * shares_supply // vault_balance)
            ledger.mint_to(shares_mint, user_shares_token_account, vault, shares)

        return DepositEvent(vault=vault, user=user, tokens_in=amount, shares_out=shares)

    def withdraw(
        self,
        vault,
        user,
        underlying_mint,
        shares_mint,
        user_token_account,
        user_shares_token_account,
        amount,
    ):
        """Burn shares and return the matching part of the vault's tokens."""
        self._require_owner(user_token_account, user)
        self._require_owner(user_shares_token_account, user)
        state = self._load(vault, underlying_mint, shares_mint)
        _require_int("amount", amount, _U64_MAX)

        ledger = self.ledger
        shares_supply = ledger.mint(shares_mint).supply
        vault_balance = ledger.account(state.vault_token_account).amount
        decimals = ledger.mint(underlying_mint).decimals

        touched = (user_token_account, user_shares_token_account, state.vault_token_account)
        with _rollback(ledger, accounts=touched, mints=(shares_mint,)):
            ledger.burn(user_shares_token_account, shares_mint, user, amount)
            tokens_out = _to_u64(amount * vault_balance // shares_supply)
            ledger.transfer_checked(
                state.vault_token_account, underlying_mint, user_token_account, vault, tokens_out, decimals
            )

        return WithdrawEvent(vault=vault, user=user, shares_in=amount, tokens_out=tokens_out)