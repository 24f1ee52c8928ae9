"""SMTP transport over the standard library ``smtplib``.

Each dispatch opens a connection, optionally upgrades it with STARTTLS or
uses implicit TLS, authenticates, and hands the raw message (``To`` and
``Subject`` lines, the rendered header block, then the body) to
``sendmail``.

When TRACE logging is enabled the SMTP conversation and TLS session
details are logged under ``mailcraft.mail.transports.smtp``.

Examples:
    >>> from mailcraft.mail.transports import SMTPCredentials, SMTPTransport
    >>> transport = SMTPTransport(
    ...     "smtp.example.com",
    ...     credentials=SMTPCredentials(username="robot", password="secret"),
    ... )
    >>> message.send("user@example.com", transport)  # doctest: +SKIP
"""

from __future__ import annotations

import contextlib
import io
import logging
import smtplib
import ssl
import sys
from collections.abc import Iterator
from dataclasses import dataclass
from email.utils import getaddresses, parseaddr
from typing import Any

from mailcraft.logging import TRACE_LEVEL
from mailcraft.mail.exceptions import MailConfigurationError, MailTransportError
from mailcraft.mail.transport import MailTransport

__all__ = ["SMTPCredentials", "SMTPSecurity", "SMTPTransport"]

log = logging.getLogger(__name__)

# Headers searched, in order, for the envelope sender.
_ENVELOPE_SENDER_HEADERS = ("Return-Path", "Sender", "From")


@dataclass(frozen=True, slots=True)
class SMTPCredentials:
    """Authentication data for an SMTP server.

    Attributes:
        username: Login name. No authentication happens when empty.
        password: Login password.
    """

    username: str | None = None
    password: str | None = None


@dataclass(frozen=True, slots=True)
class SMTPSecurity:
    """Transport security options.

    Attributes:
        use_ssl: Connect with implicit TLS (``SMTP_SSL``), usually port 465.
        use_starttls: Upgrade a plain connection with STARTTLS.
        verify_certificates: Verify the server certificate chain and host name.
        ca_file: Optional CA bundle used for verification.
    """

    use_ssl: bool = False
    use_starttls: bool = True
    verify_certificates: bool = True
    ca_file: str | None = None

    def ssl_context(self) -> ssl.SSLContext:
        """Build the TLS context for this configuration."""
        context = ssl.create_default_context(cafile=self.ca_file)
        if not self.verify_certificates:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context


@contextlib.contextmanager
def _capture_smtp_debug() -> Iterator[io.StringIO]:
    """Redirect ``smtplib`` debug output (written to stderr) into a buffer."""
    buffer = io.StringIO()
    original = sys.stderr
    sys.stderr = buffer
    try:
        yield buffer
    finally:
        sys.stderr = original


def _log_smtp_debug_output(buffer: io.StringIO) -> None:
    """Replay captured ``smtplib`` debug lines at TRACE level."""
    if not log.isEnabledFor(TRACE_LEVEL):
        return
    for raw_line in buffer.getvalue().splitlines():
        line = raw_line.strip()
        if not line:
            continue
        if line.startswith("send:"):
            log.log(TRACE_LEVEL, "[SMTP] >>> %s", line[len("send:") :].strip())
        elif line.startswith("reply:"):
            log.log(TRACE_LEVEL, "[SMTP] <<< %s", line[len("reply:") :].strip())
        else:
            log.log(TRACE_LEVEL, "[SMTP] %s", line)


def _first_common_name(entries: Any) -> str | None:
    try:
        for rdn in entries:
            for key, value in rdn:
                if key == "commonName":
                    return str(value)
    except (TypeError, ValueError):
        return None
    return None


def _extract_ssl_info(sock: ssl.SSLSocket | None) -> dict[str, Any]:
    """Collect TLS session details from an SSL socket for TRACE logging."""
    if sock is None:
        return {}
    info: dict[str, Any] = {}
    try:
        info["version"] = sock.version() or "unknown"
    except Exception:  # pylint: disable=broad-except
        info["version"] = "unknown"
    try:
        cipher = sock.cipher()
    except Exception:  # pylint: disable=broad-except
        cipher = None
    if cipher:
        info["cipher_name"], info["cipher_protocol"], info["cipher_bits"] = cipher
    try:
        cert = sock.getpeercert()
    except Exception:  # pylint: disable=broad-except
        cert = None
    if cert:
        peer_cn = _first_common_name(cert.get("subject", ()))
        if peer_cn:
            info["peer_cn"] = peer_cn
        issuer_cn = _first_common_name(cert.get("issuer", ()))
        if issuer_cn:
            info["issuer_cn"] = issuer_cn
        if "notBefore" in cert:
            info["valid_from"] = cert["notBefore"]
        if "notAfter" in cert:
            info["valid_until"] = cert["notAfter"]
    return info


def _header_value(header_block: str, name: str) -> str | None:
    prefix = f"{name.lower()}:"
    for line in header_block.split("\r\n"):
        if line.lower().startswith(prefix):
            return line[len(prefix) :].strip()
    return None


def _without_header(header_block: str, name: str) -> str:
    prefix = f"{name.lower()}:"
    return "\r\n".join(line for line in header_block.split("\r\n") if not line.lower().startswith(prefix))


def _blind_copies(header_block: str) -> list[str]:
    value = _header_value(header_block, "Bcc")
    if not value:
        return []
    return [address for _, address in getaddresses([value]) if address]


class SMTPTransport(MailTransport):
    """Deliver messages through an SMTP server.

    Args:
        host: SMTP server host name.
        port: Server port (587 for submission with STARTTLS, 465 for SSL).
        credentials: Optional login credentials.
        security: TLS options. Defaults to STARTTLS with verification.
        timeout: Socket timeout in seconds.
        envelope_from: ``MAIL FROM`` address. When omitted it is taken from
            the ``Return-Path``, ``Sender`` or ``From`` header.

    Raises:
        MailConfigurationError: If *host* is empty, *port* or *timeout* is
            not positive.
    """

    def __init__(
        self,
        host: str,
        port: int = 587,
        *,
        credentials: SMTPCredentials | None = None,
        security: SMTPSecurity | None = None,
        timeout: float = 10.0,
        envelope_from: str | None = None,
    ) -> None:
        if not host:
            raise MailConfigurationError("SMTP host is required")
        if port <= 0:
            raise MailConfigurationError("SMTP port must be greater than 0")
        if timeout <= 0:
            raise MailConfigurationError("Timeout must be greater than 0")
        self.host = host
        self.port = port
        self.credentials = credentials or SMTPCredentials()
        self.security = security or SMTPSecurity()
        self.timeout = timeout
        self.envelope_from = envelope_from

    @staticmethod
    def build_raw_message(recipient: str, subject: str, body: bytes, header_block: str) -> bytes:
        """Assemble the bytes handed to the server."""
        head = f"To: {recipient}\r\nSubject: {subject}\r\n{header_block}"
        return head.encode("utf-8") + body

    def _envelope_sender(self, header_block: str) -> str:
        if self.envelope_from:
            return self.envelope_from
        for name in _ENVELOPE_SENDER_HEADERS:
            value = _header_value(header_block, name)
            if value:
                _, address = parseaddr(value)
                if address:
                    return address
        raise MailConfigurationError("No envelope sender: set envelope_from or a sender on the message")

    def _open(self) -> smtplib.SMTP:
        if self.security.use_ssl:
            return smtplib.SMTP_SSL(
                host=self.host,
                port=self.port,
                timeout=self.timeout,
                context=self.security.ssl_context(),
            )
        return smtplib.SMTP(host=self.host, port=self.port, timeout=self.timeout)

    def dispatch(self, recipient: str, subject: str, body: bytes, header_block: str) -> bool:
        """Send one message over SMTP.

        Addresses in a ``Bcc`` header are added to the envelope recipients
        and the header itself is removed from the transmitted data.

        Raises:
            MailTransportError: If the SMTP exchange fails.
            MailConfigurationError: If no envelope sender can be determined.
        """
        sender = self._envelope_sender(header_block)
        envelope_to = list(dict.fromkeys([recipient, *_blind_copies(header_block)]))
        raw = self.build_raw_message(recipient, subject, body, _without_header(header_block, "Bcc"))
        trace_enabled = log.isEnabledFor(TRACE_LEVEL)

        if trace_enabled:
            log.log(TRACE_LEVEL, "[SMTP] Connecting to %s:%d (ssl=%s)", self.host, self.port, self.security.use_ssl)

        with contextlib.ExitStack() as stack:
            buffer = stack.enter_context(_capture_smtp_debug()) if trace_enabled else None
            try:
                with self._open() as client:
                    if trace_enabled:
                        client.set_debuglevel(1)
                        if self.security.use_ssl:
                            log.log(TRACE_LEVEL, "[SMTP] SSL: %s", _extract_ssl_info(getattr(client, "sock", None)))
                    self._handshake(client, trace_enabled)
                    if trace_enabled:
                        log.log(TRACE_LEVEL, "[SMTP] MAIL FROM: %s", sender)
                        log.log(TRACE_LEVEL, "[SMTP] RCPT TO: %s", ", ".join(envelope_to))
                    client.sendmail(sender, envelope_to, raw)
            except smtplib.SMTPException as exc:
                raise MailTransportError(f"SMTP delivery to {recipient} failed: {exc}") from exc
            except OSError as exc:
                raise MailTransportError(f"SMTP connection to {self.host}:{self.port} failed: {exc}") from exc
            finally:
                if buffer is not None:
                    _log_smtp_debug_output(buffer)

        log.debug("Email sent via SMTP to %s", recipient)
        if trace_enabled:
            log.log(TRACE_LEVEL, "[SMTP] Message sent successfully")
        return True

    def _handshake(self, client: smtplib.SMTP, trace_enabled: bool) -> None:
        client.ehlo()
        if self.security.use_starttls and not self.security.use_ssl:
            if not client.has_extn("STARTTLS"):
                raise MailTransportError(f"SMTP server {self.host} does not support STARTTLS")
            if trace_enabled:
                log.log(TRACE_LEVEL, "[SMTP] Upgrading connection with STARTTLS")
            client.starttls(context=self.security.ssl_context())
            client.ehlo()
            if trace_enabled:
                log.log(TRACE_LEVEL, "[SMTP] TLS: %s", _extract_ssl_info(getattr(client, "sock", None)))
        if self.credentials.username:
            if trace_enabled:
                log.log(TRACE_LEVEL, "[SMTP] Authenticating as: %s", self.credentials.username)
            client.login(self.credentials.username, self.credentials.password or "")
            if trace_enabled:
                log.log(TRACE_LEVEL, "[SMTP] Authentication successful")
