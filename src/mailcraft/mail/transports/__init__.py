"""Transport implementations for mail delivery.

Available transports:
    - SMTPTransport: SMTP protocol through ``smtplib`` (sync)
    - MemoryTransport: in-memory recorder for dry runs and tests
"""

from mailcraft.mail.transport import MemoryTransport
from mailcraft.mail.transports.smtp import SMTPCredentials, SMTPSecurity, SMTPTransport

__all__ = [
    "MemoryTransport",
    "SMTPCredentials",
    "SMTPSecurity",
    "SMTPTransport",
]
