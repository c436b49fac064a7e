"""Account addresses, program-derived addresses and the seeds the programs use."""

import hashlib
import itertools
from dataclasses import dataclass

POOL_SEED = b"pool"
LP_MINT_SEED = b"lp_mint"
POOL_TOKEN_ACCOUNT_A_SEED = b"pool_token_account_a"
POOL_TOKEN_ACCOUNT_B_SEED = b"pool_token_account_b"

VAULT_SEED = b"vault"
SHARES_SEED = b"shares_mint"
VAULT_TOKEN_ACCOUNT_SEED = b"vault_token_account"

PUBKEY_BYTES = 32
MAX_SEEDS = 16
MAX_SEED_LEN = 32

_PDA_MARKER = b"ProgramDerivedAddress"
_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_ALPHABET_INDEX = {char: index for index, char in enumerate(_ALPHABET)}

_FIELD_PRIME = 2**255 - 19
_CURVE_D = (-121665 * pow(121666, -1, _FIELD_PRIME)) % _FIELD_PRIME

_unique_counter = itertools.count(1)


def _b58encode(data: bytes) -> str:
    number = int.from_bytes(data, "big")
    digits = []
    while number:
        number, remainder = divmod(number, 58)
        digits.append(_ALPHABET[remainder])
    leading = len(data) - len(data.lstrip(b"\0"))
    return "1" * leading + "".join(reversed(digits))


def _b58decode(text: str) -> bytes:
    number = 0
    for char in text:
        try:
            number = number * 58 + _ALPHABET_INDEX[char]
        except KeyError:
            raise ValueError(f"invalid base58 character {char!r}") from None
    leading = len(text) - len(text.lstrip("1"))
    body = number.to_bytes((number.bit_length() + 7) // 8, "big")
    return b"\0" * leading + body


@dataclass(frozen=True, order=True, repr=False)
class Pubkey:
    """A 32-byte account address."""

    raw: bytes

    def __post_init__(self):
        if not isinstance(self.raw, (bytes, bytearray, memoryview)):
            raise TypeError("a public key is built from bytes")
        raw = bytes(self.raw)
        if len(raw) != PUBKEY_BYTES:
            raise ValueError(f"a public key is {PUBKEY_BYTES} bytes, got {len(raw)}")
        object.__setattr__(self, "raw", raw)

    def __bytes__(self) -> bytes:
        return self.raw

    def __str__(self) -> str:
        return _b58encode(self.raw)

    def __repr__(self) -> str:
        return f"Pubkey({self})"

    @classmethod
    def from_string(cls, text):
        """Parse a base58-encoded address."""
        raw = _b58decode(text)
        if len(raw) != PUBKEY_BYTES:
            raise ValueError(f"{text!r} does not decode to a {PUBKEY_BYTES}-byte key")
        return cls(raw)

    @classmethod
    def new_unique(cls):
        """Return a fresh address, distinct from every earlier one in this process."""
        counter = next(_unique_counter)
        return cls(counter.to_bytes(8, "big") + bytes(PUBKEY_BYTES - 8))


def _is_on_curve(raw: bytes) -> bool:
    """Whether the bytes decompress to a point on the ed25519 curve."""
    y = (int.from_bytes(raw, "little") & ((1 << 255) - 1)) % _FIELD_PRIME
    y_squared = y * y % _FIELD_PRIME
    u = (y_squared - 1) % _FIELD_PRIME
    v = (_CURVE_D * y_squared + 1) % _FIELD_PRIME
    if u == 0:
        return True
    if v == 0:
        return False
    x_squared = u * pow(v, -1, _FIELD_PRIME) % _FIELD_PRIME
    return pow(x_squared, (_FIELD_PRIME - 1) // 2, _FIELD_PRIME) == 1


def _normalise_seeds(seeds) -> list:
    normalised = [bytes(seed) for seed in seeds]
    if len(normalised) > MAX_SEEDS:
        raise ValueError(f"at most {MAX_SEEDS} seeds are allowed")
    for seed in normalised:
        if len(seed) > MAX_SEED_LEN:
            raise ValueError(f"a seed is at most {MAX_SEED_LEN} bytes")
    return normalised


def _create_program_address(seeds, program_id) -> Pubkey:
    digest = hashlib.sha256()
    for seed in _normalise_seeds(seeds):
        digest.update(seed)
    digest.update(bytes(program_id))
    digest.update(_PDA_MARKER)
    raw = digest.digest()
    if _is_on_curve(raw):
        raise ValueError("derived address lies on the curve")
    return Pubkey(raw)


def find_program_address(seeds, program_id):
    """Derive the off-curve address for ``seeds`` and return it with its bump seed."""
    seeds = _normalise_seeds(seeds)
    if len(seeds) >= MAX_SEEDS:
        raise ValueError(f"at most {MAX_SEEDS - 1} seeds leave room for the bump")
    for bump in range(255, -1, -1):
        try:
            return _create_program_address([*seeds, bytes([bump])], program_id), bump
        except ValueError:
            continue
    raise ValueError("unable to find a viable program address bump seed")