"""
Certificate trigger contract.

Rendering and storage of the document are external; the workflow only
supplies the facts and records the returned handle.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


@dataclass(frozen=True)
class CertificateRequest:
    """Facts printed on an installation certificate."""

    booking_id: int
    customer_name: str | None
    project_type: str | None
    size: str | None
    install_date: str
    location: str
    certificate_id: str


class CertificateIssuer(Protocol):
    """External collaborator that produces the certificate document."""

    async def issue(self, request: CertificateRequest) -> str:
        """
        Produce the certificate.

        Args:
            request: Certificate facts

        Returns:
            Document handle (URL or storage key)
        """
        ...


def build_certificate_id(booking_id: int, issued_at: datetime) -> str:
    """
    Human-readable certificate identifier.

    Zero-padded booking id plus the last six digits of the epoch
    milliseconds, e.g. '000042-512345'.
    """
    millis = int(issued_at.timestamp() * 1000)
    return f"{booking_id:06d}-{millis % 1_000_000:06d}"
