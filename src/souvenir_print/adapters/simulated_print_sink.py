"""Print sink that simulates a printer with a fixed delay."""

import asyncio
import logging
from dataclasses import dataclass

from souvenir_print.domain.jobs import PrintOutcome
from souvenir_print.services.print_jobs import PrintSink

_logger = logging.getLogger(__name__)


@dataclass
class SimulatedPrintSink(PrintSink):
    """Waits ``delay_seconds`` and reports a configured result."""

    delay_seconds: float = 2.0
    succeed: bool = True
    failure_reason: str = "simulated printer failure"

    async def print_photo(
        self, data: bytes, content_type: str, recipient_label: str
    ) -> PrintOutcome:
        _logger.info(
            "Simulating print for %s (%s bytes, %s)",
            recipient_label,
            len(data),
            content_type,
        )
        await asyncio.sleep(self.delay_seconds)
        if not self.succeed:
            return PrintOutcome.failed(self.failure_reason)
        return PrintOutcome.ok(reference="simulated")
