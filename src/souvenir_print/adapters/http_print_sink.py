"""Cloud print sink that posts photos to an HTTP print service."""

import base64
from dataclasses import dataclass

import httpx

from souvenir_print.domain.jobs import PrintOutcome
from souvenir_print.services.print_jobs import PrintSink


@dataclass
class HttpxPrintSink(PrintSink):
    """Submits jobs to a print service API with a bearer token."""

    url: str
    token: str | None
    http_client: httpx.AsyncClient
    printer_id: str | None = None
    timeout_seconds: float = 30.0

    @classmethod
    def create(
        cls,
        url: str,
        token: str | None,
        printer_id: str | None = None,
        timeout_seconds: float = 30.0,
    ) -> "HttpxPrintSink":
        """Create a print sink with a managed httpx session."""
        return cls(
            url=url,
            token=token,
            http_client=httpx.AsyncClient(),
            printer_id=printer_id,
            timeout_seconds=timeout_seconds,
        )

    async def print_photo(
        self, data: bytes, content_type: str, recipient_label: str
    ) -> PrintOutcome:
        """Post the photo as base64 content."""
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        payload: dict[str, object] = {
            "title": "Souvenir Photo",
            "recipient": recipient_label,
            "contentType": content_type,
            "content": base64.b64encode(data).decode("ascii"),
        }
        if self.printer_id:
            payload["printerId"] = self.printer_id
        try:
            response = await self.http_client.post(
                self.url, json=payload, headers=headers, timeout=self.timeout_seconds
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            return PrintOutcome.failed(
                f"print service returned {exc.response.status_code}"
            )
        except httpx.HTTPError as exc:
            return PrintOutcome.failed(f"print service unreachable: {exc}")
        body = response.json() if response.content else {}
        reference = body.get("id") if isinstance(body, dict) else None
        return PrintOutcome.ok(reference=str(reference) if reference else None)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
