# notifications/services/brevo.py
from __future__ import annotations

import base64
import json
import logging
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from django.conf import settings

logger = logging.getLogger(__name__)

BREVO_BASE = "https://api.brevo.com/v3"
DEFAULT_SENDER_NAME = "Invoicemonk"


class EmailDeliveryError(RuntimeError):
    pass


class EmailNotConfiguredError(EmailDeliveryError):
    pass


def _brevo_cfg() -> dict:
    delivery = getattr(settings, "EMAIL_DELIVERY", {}) or {}
    cfg = (delivery.get("BREVO") or {}) if isinstance(delivery, dict) else {}
    return cfg if isinstance(cfg, dict) else {}


def is_email_configured() -> bool:
    return bool((_brevo_cfg().get("API_KEY") or "").strip())


def _get_api_key() -> str:
    key = (_brevo_cfg().get("API_KEY") or "").strip()
    if not key:
        raise EmailNotConfiguredError(
            "Email service not configured. "
            "Expected settings.EMAIL_DELIVERY['BREVO']['API_KEY'] (env BREVO_API_KEY)."
        )
    return key


def _safe_preview(text: str, limit: int = 800) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit] + " ...(truncated)"


def _parse_json_or_text(raw: str) -> dict[str, Any]:
    raw = raw or ""
    try:
        parsed = json.loads(raw)
    except ValueError:
        return {"kind": "text", "raw": raw}
    if isinstance(parsed, dict):
        return {"kind": "json", "json": parsed, "raw": raw}
    return {"kind": "json_non_object", "json": parsed, "raw": raw}


def _request_json(method: str, url: str, *, body: dict | None = None) -> dict[str, Any]:
    api_key = _get_api_key()
    timeout = int(_brevo_cfg().get("TIMEOUT") or 20)

    data = None
    if body is not None:
        data = json.dumps(body, ensure_ascii=False).encode("utf-8")

    req = Request(
        url,
        data=data,
        headers={
            "api-key": api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
        },
        method=method,
    )

    try:
        with urlopen(req, timeout=timeout) as resp:
            raw = resp.read().decode("utf-8", errors="replace")
    except HTTPError as e:
        raw = e.read().decode("utf-8", errors="replace") if e.fp else ""
        parsed = _parse_json_or_text(raw)
        if parsed.get("kind") == "json":
            j = parsed.get("json") or {}
            msg = j.get("message") or j.get("code") or "Brevo rejected request"
            raise EmailDeliveryError(f"Brevo HTTPError: {e.code} {msg}") from e
        raise EmailDeliveryError(
            f"Brevo HTTPError: {e.code} {_safe_preview(parsed.get('raw') or str(e))}"
        ) from e
    except URLError as e:
        raise EmailDeliveryError(f"Brevo URLError: {e}") from e
    except OSError as e:
        raise EmailDeliveryError(f"Brevo request failed: {e}") from e

    parsed = _parse_json_or_text(raw)
    if parsed.get("kind") != "json":
        # 201 responses normally carry {"messageId": ...}; an empty body is still success
        return {}
    return parsed.get("json") or {}


def encode_attachment(*, name: str, content: bytes | str) -> dict:
    if isinstance(content, str):
        content = content.encode("utf-8")
    return {"name": name, "content": base64.b64encode(content).decode("ascii")}


def send_transactional_email(
    *,
    to_email: str,
    to_name: str = "",
    subject: str,
    html_content: str,
    sender_name: str | None = None,
    attachments: list[dict] | None = None,
) -> dict:
    """
    Send one transactional email through Brevo.

    attachments: [{"name": "...", "content": "<base64>"}] (see encode_attachment)
    Returns Brevo's JSON body (normally {"messageId": "..."}).
    Raises EmailNotConfiguredError / EmailDeliveryError.
    """
    to_email = str(to_email or "").strip()
    if not to_email:
        raise EmailDeliveryError("Recipient email is required")

    payload: dict = {
        "sender": {
            "name": sender_name or DEFAULT_SENDER_NAME,
            "email": (_brevo_cfg().get("SENDER_EMAIL") or "").strip(),
        },
        "to": [{"email": to_email, "name": to_name or to_email}],
        "subject": subject,
        "htmlContent": html_content,
    }
    if attachments:
        payload["attachment"] = attachments

    result = _request_json("POST", f"{BREVO_BASE}/smtp/email", body=payload)

    logger.info(
        "Transactional email sent",
        extra={"to_email": to_email, "message_id": result.get("messageId")},
    )
    return result
