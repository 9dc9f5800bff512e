"""Solana address validation for token mints and wallets."""

from solders.pubkey import Pubkey  # type: ignore[import-untyped]

from rugradar.exceptions import InvalidIdentifierError

_BASE58_ALPHABET = frozenset("123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz")


def validate_address(raw: str) -> str:
    """Strictly validate a base58 Solana public key and return it stripped.

    Raises InvalidIdentifierError on anything that does not decode to 32 bytes.
    """
    s = (raw or "").strip() if isinstance(raw, str) else ""
    if not s:
        raise InvalidIdentifierError(str(raw), "empty address")
    if "..." in s:
        raise InvalidIdentifierError(s, "truncated address (contains '...')")
    if not 32 <= len(s) <= 44:
        raise InvalidIdentifierError(s, f"length {len(s)} outside 32-44")
    if not set(s) <= _BASE58_ALPHABET:
        raise InvalidIdentifierError(s, "not base58")
    try:
        Pubkey.from_string(s)
    except ValueError as e:
        raise InvalidIdentifierError(s, f"not a 32-byte public key ({e})") from e
    return s
