from solproof.utils.address_utils import address_from_bytes, is_valid_address, validate_address

__all__ = ["address_from_bytes", "is_valid_address", "validate_address"]
