# tokenpools

`tokenpools` models two small token programs in plain Python, with no
dependencies beyond the standard library:

- **Liquidity pools** (`tokenpools.lps.LiquidityPoolProgram`): constant-product
  pools of two mints with a fee in basis points. Liquidity is added and removed
  against an LP token, and swaps run in either direction.
- **Vaults** (`tokenpools.vaults.VaultProgram`): single-mint vaults that issue
  shares on deposit and redeem them pro rata on withdrawal.

Both programs work on a `tokenpools.token.TokenLedger`, an in-memory record of
mints and token accounts with checked transfers, minting and burning. Amounts
are integers in the unsigned 64-bit range, and every division rounds down.

The `test` extra lists the libraries the test suite uses (pytest and hypothesis).

## Modules

| Module | Contents |
| --- | --- |
| `tokenpools.seeds` | `Pubkey` (32-byte addresses, base58 via `str()` and `Pubkey.from_string`, `Pubkey.new_unique`), `find_program_address`, and the seed constants |
| `tokenpools.token` | `Mint`, `TokenAccount` and `TokenLedger` |
| `tokenpools.state` | `LiquidityPool` and `Vault` records, with `pack()` / `unpack()` to and from bytes |
| `tokenpools.events` | `AddLiquidityEvent`, `RemoveLiquidityEvent`, `SwapEvent`, `DepositEvent`, `WithdrawEvent` |
| `tokenpools.errors` | `LpsError`, `VaultsError` (with `LpsErrorCode`, `VaultsErrorCode`) and `TokenError` |
| `tokenpools.lps` | `LiquidityPoolProgram`, `integer_sqrt`, `PROGRAM_ID` |
| `tokenpools.vaults` | `VaultProgram`, `PROGRAM_ID` |

## Example

```python
from tokenpools.lps import LiquidityPoolProgram
from tokenpools.seeds import Pubkey
from tokenpools.token import TokenLedger

ledger = TokenLedger()
issuer, user = Pubkey.new_unique(), Pubkey.new_unique()
mint_a, mint_b = Pubkey.new_unique(), Pubkey.new_unique()
ledger.create_mint(mint_a, 6, issuer)
ledger.create_mint(mint_b, 6, issuer)

account_a, account_b, account_lp = (Pubkey.new_unique() for _ in range(3))
ledger.create_account(account_a, mint_a, user)
ledger.create_account(account_b, mint_b, user)
ledger.mint_to(mint_a, account_a, issuer, 1_000_000)
ledger.mint_to(mint_b, account_b, issuer, 4_000_000)

program = LiquidityPoolProgram(ledger)
pool = program.initialize_pool(user, mint_a, mint_b, 30)
lp_mint = program.pool(pool).lp_mint
ledger.create_account(account_lp, lp_mint, user)

event = program.add_liquidity(
    pool, user, mint_a, mint_b, lp_mint,
    account_a, account_b, account_lp, 100_000, 400_000,
)
print(event.lp_tokens_minted)  # 200000

swap = program.swap(pool, user, mint_a, mint_b, account_a, account_b, 1_000, 0)
print(swap.fee, swap.amount_out)  # 3 3948
```

`initialize_pool` derives the pool address from its two mints, and the LP mint
(9 decimals) and both pool token accounts from the pool address, with
`find_program_address`. `initialize_vault` derives the vault address from the
authority and the underlying mint, and the shares mint (with the underlying
mint's decimals) and vault token account from the vault address. Each
instruction returns its event object.

## Pool arithmetic

- The first deposit into a pool mints `integer_sqrt(amount_a * amount_b)` LP tokens.
- A later deposit mints
  `min(amount_a * supply // reserve_a, amount_b * supply // reserve_b)`.
- Removing `lp_amount` returns `lp_amount * reserve // supply` of each token.
- A swap takes `fee = amount_in * fee_bps // 10000`. The user receives
  `reserve_out * (amount_in - fee) // (reserve_in + amount_in - fee)`. The swap
  runs from A to B when the input account holds `mint_a`, and from B to A otherwise.

`initialize_pool` rejects identical mints and a `fee_bps` of 10000 or more.
Zero amounts are rejected for liquidity changes and swaps.

## Vault arithmetic

- A deposit into a vault with no shares outstanding, or with an empty token
  account, mints shares 1:1.
- Otherwise it mints `amount * shares_supply // vault_balance` shares.
- A withdrawal burns `amount` shares and returns
  `amount * vault_balance // shares_supply` tokens.

## Errors

- `LpsError`: a mint or LP mint that does not belong to the pool, a zero
  amount, output below `minimum_amount_out`, identical mints, or a fee of
  10000 basis points or more. The reason is in its `code`.
- `VaultsError`: a shares mint or underlying mint that does not belong to the vault.
- `TokenError`: ledger failures such as a missing mint or account, insufficient
  funds, a wrong authority or owner, a mismatched mint or decimals, an overflow,
  or a user token account not owned by the user.
- `KeyError` for an unknown pool or vault address, and `ValueError` for amounts
  that are not integers in the u64 range.

If a token operation fails part-way through `add_liquidity`, `remove_liquidity`,
`swap`, `deposit` or `withdraw`, the balances and supplies it touched are put
back before the error propagates.

## What it does not do

- All state lives in memory for the life of the `TokenLedger` and program
  objects; nothing is stored or loaded from disk.
- It has no command-line tool and no network interface.
- Authorities are compared as addresses; there are no signatures or keys.
- `VaultsErrorCode.INVALID_AUTHORITY` is defined but no vault instruction raises it.