"""Notifier that only writes completion notices to the log."""

import logging
from dataclasses import dataclass, field

from souvenir_print.domain.jobs import UserInfo
from souvenir_print.services.print_jobs import Notifier

_logger = logging.getLogger(__name__)


@dataclass
class LoggingNotifier(Notifier):
    """Used when no email provider is configured."""

    sent: list[str] = field(default_factory=list)

    async def notify(
        self, recipient_email: str, tracking_id: str, user_info: UserInfo
    ) -> None:
        _logger.info(
            "Souvenir %s ready for %s <%s> at %s",
            tracking_id,
            user_info.full_name,
            recipient_email,
            user_info.location,
        )
        self.sent.append(tracking_id)
