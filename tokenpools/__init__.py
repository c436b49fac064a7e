"""Constant-product liquidity pools and share vaults over an in-memory token ledger."""

__version__ = "0.1.0"
__all__ = ["errors", "events", "seeds", "state", "token", "lps", "vaults"]