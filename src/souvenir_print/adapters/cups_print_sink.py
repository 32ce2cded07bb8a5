"""CUPS print sink using the ``lp`` command."""

import asyncio
import logging
import re
from dataclasses import dataclass

from souvenir_print.domain.errors import PrintSinkError
from souvenir_print.domain.jobs import PrintOutcome
from souvenir_print.services.print_jobs import PrintSink

_logger = logging.getLogger(__name__)

_REQUEST_ID = re.compile(r"request id is (\S+)")


@dataclass
class CupsPrintSink(PrintSink):
    """Pipes photo bytes to ``lp`` on Linux and macOS hosts."""

    printer_name: str | None = None
    timeout_seconds: float = 60.0
    command: str = "lp"

    def build_command(self, recipient_label: str) -> list[str]:
        """Return the argv used to submit a job."""
        args = [self.command]
        if self.printer_name:
            args.extend(["-d", self.printer_name])
        title = "Souvenir Photo"
        if recipient_label:
            title = f"{title} - {recipient_label}"
        args.extend(["-t", title])
        return args

    async def print_photo(
        self, data: bytes, content_type: str, recipient_label: str
    ) -> PrintOutcome:
        args = self.build_command(recipient_label)
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise PrintSinkError(
                f"could not start {self.command}: {exc}", command=self.command
            ) from exc
        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(input=data), timeout=self.timeout_seconds
            )
        except TimeoutError:
            process.kill()
            await process.wait()
            return PrintOutcome.failed(
                f"{self.command} timed out after {self.timeout_seconds}s"
            )
        if process.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            return PrintOutcome.failed(
                message or f"{self.command} exited with {process.returncode}"
            )
        match = _REQUEST_ID.search(stdout.decode("utf-8", errors="replace"))
        reference = match.group(1) if match else None
        _logger.info("CUPS job submitted: %s", reference or "unknown id")
        return PrintOutcome.ok(reference=reference)
