"""An in-memory token ledger: mints, token accounts, minting, burning and transfers."""

from dataclasses import dataclass

from .errors import TokenError
from .seeds import Pubkey

_U64_MAX = 2**64 - 1


def _require_amount(amount) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValueError("token amounts are integers")
    if not 0 <= amount <= _U64_MAX:
        raise ValueError("token amount is out of range for a u64")


@dataclass
class Mint:
    """A token mint and its circulating supply."""

    address: Pubkey
    decimals: int
    mint_authority: Pubkey | None
    freeze_authority: Pubkey | None = None
    supply: int = 0


@dataclass
class TokenAccount:
    """A balance of one mint held by one owner."""

    address: Pubkey
    mint: Pubkey
    owner: Pubkey
    amount: int = 0


class TokenLedger:
    """Holds mints and token accounts and applies token instructions to them."""

    def __init__(self):
        self._mints: dict[Pubkey, Mint] = {}
        self._accounts: dict[Pubkey, TokenAccount] = {}

    def _claim(self, address: Pubkey) -> None:
        if address in self._mints or address in self._accounts:
            raise TokenError(f"account {address} is already in use")

    def create_mint(self, address, decimals, authority, freeze_authority=None):
        """Create a mint with no supply."""
        if isinstance(decimals, bool) or not isinstance(decimals, int) or not 0 <= decimals <= 255:
            raise ValueError("decimals must fit in a u8")
        self._claim(address)
        mint = Mint(address, decimals, authority, freeze_authority)
        self._mints[address] = mint
        return mint

    def create_account(self, address, mint, owner):
        """Create an empty token account for ``mint`` owned by ``owner``."""
        self.mint(mint)
        self._claim(address)
        account = TokenAccount(address, mint, owner)
        self._accounts[address] = account
        return account

    def mint(self, address):
        """Return the mint at ``address``."""
        try:
            return self._mints[address]
        except KeyError:
            raise TokenError(f"mint {address} not found") from None

    def account(self, address):
        """Return the token account at ``address``."""
        try:
            return self._accounts[address]
        except KeyError:
            raise TokenError(f"token account {address} not found") from None

    def mint_to(self, mint, destination, authority, amount):
        """Issue ``amount`` new tokens into ``destination``."""
        _require_amount(amount)
        mint_info = self.mint(mint)
        target = self.account(destination)
        if target.mint != mint:
            raise TokenError("account mint mismatch")
        if mint_info.mint_authority is None:
            raise TokenError("mint has a fixed supply")
        if authority != mint_info.mint_authority:
            raise TokenError("owner does not match")
        if mint_info.supply + amount > _U64_MAX or target.amount + amount > _U64_MAX:
            raise TokenError("operation overflowed")
        mint_info.supply += amount
        target.amount += amount

    def burn(self, account, mint, authority, amount):
        """Destroy ``amount`` tokens held in ``account``."""
        _require_amount(amount)
        source = self.account(account)
        mint_info = self.mint(mint)
        if source.amount < amount:
            raise TokenError("insufficient funds")
        if source.mint != mint:
            raise TokenError("account mint mismatch")
        if authority != source.owner:
            raise TokenError("owner does not match")
        source.amount -= amount
        mint_info.supply -= amount

    def transfer_checked(self, source, mint, destination, authority, amount, decimals):
        """Move ``amount`` tokens between two accounts of the same mint."""
        _require_amount(amount)
        sender = self.account(source)
        receiver = self.account(destination)
        mint_info = self.mint(mint)
        if sender.amount < amount:
            raise TokenError("insufficient funds")
        if sender.mint != receiver.mint or sender.mint != mint:
            raise TokenError("account mint mismatch")
        if decimals != mint_info.decimals:
            raise TokenError("mint decimals mismatch")
        if authority != sender.owner:
            raise TokenError("owner does not match")
        if sender is receiver:
            return
        if receiver.amount + amount > _U64_MAX:
            raise TokenError("operation overflowed")
        sender.amount -= amount
        receiver.amount += amount