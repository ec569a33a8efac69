"""Tests for the browser signer page."""

from __future__ import annotations

from fastapi import status

from covenant_gate.api.v1.endpoints.signer import render_signer_page


def test_signer_page_embeds_parameters(client) -> None:
    challenge = "Verify ownership for 0xabc at 1700000000000 (nonce 00ff)"

    response = client.get("/signer.html", params={"userId": "42", "challenge": challenge})

    assert response.status_code == status.HTTP_200_OK
    assert response.headers["content-type"].startswith("text/html")
    assert challenge in response.text
    assert 'const userId = "42";' in response.text


def test_signer_page_renders_without_parameters(client) -> None:
    response = client.get("/signer.html")

    assert response.status_code == status.HTTP_200_OK
    assert 'const challenge = "";' in response.text


def test_signer_page_escapes_markup() -> None:
    page = render_signer_page("42", '</script><script>alert("x")</script>')

    assert "</script><script>" not in page
    assert "&lt;/script&gt;" in page
    assert "\\u003c/script\\u003e" in page


def test_javascript_template_literals_survive_rendering() -> None:
    page = render_signer_page("42", "hi")

    assert "${body.score}" in page
    assert "$${" not in page
