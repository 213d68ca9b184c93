from __future__ import annotations

from typing import Any, Dict

import requests

SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"


class MailerNotConfigured(RuntimeError):
    pass


class MailClient:
    def __init__(self, api_key: str | None, sender: str):
        self.api_key = api_key
        self.sender = sender

    def _post(self, payload: Dict[str, Any]) -> None:
        if not self.api_key:
            raise MailerNotConfigured("SENDGRID_API_KEY is not set; cannot send mail.")
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        r = requests.post(SENDGRID_URL, json=payload, headers=headers, timeout=20)
        r.raise_for_status()

    def send(self, to: str, subject: str, html: str) -> None:
        self._post(
            {
                "personalizations": [{"to": [{"email": to}]}],
                "from": {"email": self.sender},
                "subject": subject,
                "content": [{"type": "text/html", "value": html}],
            }
        )

    def send_verification(self, to: str, verify_url: str) -> None:
        html = (
            "<h1>You successfully signed up!</h1>"
            "<p>Please verify your email by clicking the link below:</p>"
            f'<a href="{verify_url}">Verify Email</a>'
        )
        self.send(to, "Signup succeeded! Please verify your email", html)
