"""Signature utilities built on secp256k1 personal-sign recovery."""
from __future__ import annotations

import re

from eth_account import Account
from eth_account.messages import encode_defunct

_ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")
_SIGNATURE_BYTES = 65


def is_wallet_address(value: str) -> bool:
    """Return True if `value` looks like a 20-byte hex account address."""
    return bool(_ADDRESS_PATTERN.match(value.strip()))


def normalize_address(address: str) -> str:
    """Return the lowercase form used for all address comparisons."""
    return address.strip().lower()


def decode_signature(signature_hex: str) -> bytes:
    """Decode a hex signature, accepting an optional 0x prefix.

    Raises:
        ValueError: If the value is not hex or is not a 65-byte (r, s, v) signature.
    """
    cleaned = signature_hex.strip()
    if cleaned[:2].lower() == "0x":
        cleaned = cleaned[2:]
    try:
        raw = bytes.fromhex(cleaned)
    except ValueError as err:
        raise ValueError(f"Invalid hex encoding: {err}") from err
    if len(raw) != _SIGNATURE_BYTES:
        raise ValueError(f"Signatures must be {_SIGNATURE_BYTES} bytes, got {len(raw)}")
    return raw


def recover_signer(message: str, signature_hex: str) -> str:
    """Recover the address that personal-signed `message`.

    The message is wrapped with the standard "\\x19Ethereum Signed Message:\\n<len>"
    prefix, keccak-hashed, and the public key is recovered from the ECDSA
    signature over secp256k1.

    Args:
        message: Exact text shown to the wallet for signing.
        signature_hex: Hex-encoded 65-byte signature returned by the wallet.

    Returns:
        The recovered address in lowercase.

    Raises:
        ValueError: If the signature is malformed or recovery fails.
    """
    signature = decode_signature(signature_hex)
    try:
        recovered = Account.recover_message(encode_defunct(text=message), signature=signature)
    except Exception as err:
        raise ValueError(f"Could not recover signer: {err}") from err
    return normalize_address(recovered)


def signature_matches(message: str, signature_hex: str, expected_address: str) -> bool:
    """Return True if `signature_hex` over `message` was produced by `expected_address`."""
    try:
        return recover_signer(message, signature_hex) == normalize_address(expected_address)
    except ValueError:
        return False
