"""Browser signer page."""

from __future__ import annotations

import html
import json
from functools import lru_cache
from pathlib import Path
from string import Template

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

router = APIRouter(tags=["verification"])

_TEMPLATE_PATH = Path(__file__).resolve().parents[3] / "static" / "signer.html"


@lru_cache(maxsize=1)
def _load_template() -> Template:
    return Template(_TEMPLATE_PATH.read_text(encoding="utf-8"))


def _script_literal(value: str) -> str:
    # JSON string safe to inline in a <script> block
    return json.dumps(value).replace("<", "\\u003c").replace(">", "\\u003e").replace("&", "\\u0026")


def render_signer_page(user_id: str, challenge: str) -> str:
    """Return the signer page with the session parameters embedded."""
    return _load_template().substitute(
        user_id_html=html.escape(user_id),
        challenge_html=html.escape(challenge),
        user_id_js=_script_literal(user_id),
        challenge_js=_script_literal(challenge),
    )


@router.get("/signer.html", response_class=HTMLResponse)
async def signer_page(userId: str = "", challenge: str = "") -> HTMLResponse:  # noqa: N803
    """Serve the wallet signer page; missing parameters still render (200)."""
    return HTMLResponse(render_signer_page(userId, challenge))
