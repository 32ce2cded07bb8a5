"""SendGrid email notifier."""

from dataclasses import dataclass
from html import escape

import httpx

from souvenir_print.domain.errors import NotificationError
from souvenir_print.domain.jobs import UserInfo
from souvenir_print.services.print_jobs import Notifier

SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"
SUBJECT = "Your Souvenir is Ready! \U0001f389"


@dataclass
class HttpxSendGridNotifier(Notifier):
    """Sends pickup emails through SendGrid's v3 mail API."""

    api_key: str
    from_email: str
    http_client: httpx.AsyncClient
    url: str = SENDGRID_URL

    @classmethod
    def create(cls, api_key: str, from_email: str) -> "HttpxSendGridNotifier":
        """Create a notifier with a managed httpx session."""
        return cls(
            api_key=api_key, from_email=from_email, http_client=httpx.AsyncClient()
        )

    async def notify(
        self, recipient_email: str, tracking_id: str, user_info: UserInfo
    ) -> None:
        """Send the pickup email."""
        payload = {
            "personalizations": [{"to": [{"email": recipient_email}]}],
            "from": {"email": self.from_email},
            "subject": SUBJECT,
            "content": [
                {"type": "text/plain", "value": render_text(tracking_id, user_info)},
                {"type": "text/html", "value": render_html(tracking_id, user_info)},
            ],
        }
        try:
            response = await self.http_client.post(
                self.url,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=10,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise NotificationError(
                f"SendGrid returned {exc.response.status_code}",
                status_code=exc.response.status_code,
                body=exc.response.text,
            ) from exc
        except httpx.HTTPError as exc:
            raise NotificationError(f"SendGrid request failed: {exc}") from exc

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def render_text(tracking_id: str, user_info: UserInfo) -> str:
    """Plain-text body of the pickup email."""
    return (
        f"Hi {user_info.first_name},\n\n"
        "Great news! Your souvenir photo has been successfully printed "
        "and is ready for pickup.\n\n"
        f"Tracking Number: {tracking_id}\n\n"
        "Order Details:\n"
        f"- Name: {user_info.full_name}\n"
        f"- Location: {user_info.location}\n"
        "- Status: Ready for pickup\n\n"
        "Please present your tracking number when picking up your souvenir.\n\n"
        "Thank you for using Souvenir App!\n\n"
        "Best regards,\n"
        "The Souvenir App Team\n"
    )


def render_html(tracking_id: str, user_info: UserInfo) -> str:
    """HTML body of the pickup email."""
    return _HTML_TEMPLATE.format(
        first_name=escape(user_info.first_name),
        full_name=escape(user_info.full_name),
        location=escape(user_info.location),
        tracking_id=escape(tracking_id),
    )


_HTML_TEMPLATE = """<!DOCTYPE html>
<html>
  <head>
    <style>
      body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
      .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
      .header {{ background: #667eea; color: white; padding: 30px;
                 text-align: center; border-radius: 10px 10px 0 0; }}
      .content {{ background: #f9f9f9; padding: 30px;
                  border-radius: 0 0 10px 10px; }}
      .tracking-box {{ background: white; padding: 20px; border-radius: 8px;
                       margin: 20px 0; border-left: 4px solid #667eea; }}
      .tracking-number {{ font-size: 24px; font-weight: bold; color: #667eea; }}
    </style>
  </head>
  <body>
    <div class="container">
      <div class="header"><h1>Your Souvenir is Ready!</h1></div>
      <div class="content">
        <p>Hi {first_name},</p>
        <p>Great news! Your souvenir photo has been successfully printed
        and is ready for pickup.</p>
        <div class="tracking-box">
          <p><strong>Tracking Number:</strong></p>
          <p class="tracking-number">{tracking_id}</p>
        </div>
        <p>Your order details:</p>
        <ul>
          <li><strong>Name:</strong> {full_name}</li>
          <li><strong>Location:</strong> {location}</li>
          <li><strong>Status:</strong> Ready for pickup</li>
        </ul>
        <p>Please present your tracking number when picking up your souvenir.</p>
        <p>Thank you for using Souvenir App!</p>
        <p>Best regards,<br>The Souvenir App Team</p>
      </div>
    </div>
  </body>
</html>
"""
