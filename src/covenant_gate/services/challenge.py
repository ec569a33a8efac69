"""Challenge text and signer link construction."""
from __future__ import annotations

import secrets
import time
from urllib.parse import urlencode

NONCE_BYTES = 8


def generate_challenge(wallet: str, issued_at_ms: int | None = None, nonce: str | None = None) -> str:
    """Return the message a user must personal-sign to prove wallet control.

    The text embeds the wallet, the issuance time in milliseconds and a random
    nonce, so two issuances never produce the same challenge even within the
    same millisecond.
    """
    timestamp = int(time.time() * 1000) if issued_at_ms is None else issued_at_ms
    nonce_hex = nonce or secrets.token_hex(NONCE_BYTES)
    return f"Verify ownership for {wallet} at {timestamp} (nonce {nonce_hex})"


def build_signer_url(base_url: str, user_id: str, challenge: str) -> str:
    """Return the signer page link carrying the user id and URL-encoded challenge."""
    query = urlencode({"userId": user_id, "challenge": challenge})
    return f"{base_url.rstrip('/')}/signer.html?{query}"


def render_challenge_message(signer_url: str) -> str:
    """Return the text posted into the private verification channel."""
    return (
        "# human.tech Covenant Signatory Verification\n\n"
        "Click the link to connect your wallet and sign:\n\n"
        f"🔗 {signer_url}"
    )
