"""Address validation helpers."""

from __future__ import annotations

from solders.pubkey import Pubkey

from solproof.core.exceptions import InputValidationError


def is_valid_address(address: str | None) -> bool:
    """Return True if address is a valid Solana (Pubkey) address."""
    if not address or not isinstance(address, str):
        return False
    try:
        Pubkey.from_string(address.strip())
        return True
    except Exception:
        return False


def validate_address(address: str | None) -> str:
    """Return the stripped address or raise InputValidationError."""
    if not is_valid_address(address):
        raise InputValidationError(f"Invalid program address: {address or 'missing'}", value=address)
    return address.strip()


def address_from_bytes(raw: bytes) -> str:
    """Base58 address for a 32-byte public key."""
    return str(Pubkey.from_bytes(bytes(raw)))

