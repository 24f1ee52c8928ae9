"""Tests for the MailMessage model."""

from __future__ import annotations

from collections.abc import Callable
from email.utils import parsedate_to_datetime
from pathlib import Path

import pytest

from mailcraft.config import load_config
from mailcraft.mail import (
    AttachmentNotFoundError,
    DuplicateAttachmentError,
    EmptyMessageBodyError,
    MailMessage,
    MailValidationError,
    MemoryTransport,
    MimeStructure,
    SenderSettings,
)
from mailcraft.mail.encoding import escape_header_word
from mailcraft.mail.message import DEFAULT_HEADERS

MessageFactory = Callable[..., MailMessage]


class TestConstruction:
    """Default headers and initial content."""

    def test_default_header_order(self, make_message: MessageFactory) -> None:
        """Envelope headers start in a fixed order."""
        assert tuple(make_message().headers) == DEFAULT_HEADERS

    def test_date_is_rfc2822(self, make_message: MessageFactory) -> None:
        """The Date header parses as an RFC 2822 date."""
        assert parsedate_to_datetime(make_message().headers["Date"]) is not None

    def test_sender_from_settings(self, make_message: MessageFactory) -> None:
        """Sender settings fill From, Sender and the reply headers."""
        headers = make_message().headers
        assert headers["From"] == f"{escape_header_word('Robot')} <robot@example.com>"
        assert headers["Sender"] == "robot@example.com"
        assert headers["Reply-To"] == "robot@example.com"
        assert headers["Return-Path"] == "robot@example.com"

    def test_no_reply_sender(self) -> None:
        """Disabling replies leaves the reply headers empty."""
        message = MailMessage(settings=SenderSettings(address="noreply@example.com", allow_reply=False))
        assert message.headers["Sender"] == "noreply@example.com"
        assert message.headers["Reply-To"] == ""
        assert message.headers["Return-Path"] == ""

    def test_empty_settings(self) -> None:
        """Without a configured sender the sender headers stay empty."""
        message = MailMessage(settings=SenderSettings())
        assert message.headers["From"] == ""
        assert "From:" not in message.set_text_body("x").render().header_block

    def test_subject_is_escaped(self, make_message: MessageFactory) -> None:
        """The subject is stored as an encoded-word."""
        assert make_message("Réunion").subject == escape_header_word("Réunion")

    def test_text_fills_both_bodies(self, make_message: MessageFactory) -> None:
        """Initial text becomes a stripped text body and a line-broken HTML body."""
        message = make_message(text="Hello <b>you</b>\nBye")
        assert message.text_body == "Hello you\nBye"
        assert message.html_body == '<div dir="ltr">Hello <b>you</b><br />Bye</div>'
        assert message.is_multi_content()

    def test_settings_from_config(self) -> None:
        """Without explicit settings the loaded configuration is used."""
        Path("mailcraft.conf.yml").write_text(
            "mail:\n"
            "  boundary_prefix: ACME\n"
            "  sender:\n"
            "    address: config@example.com\n"
            "    name: Config\n",
            encoding="utf-8",
        )
        load_config()
        message = MailMessage("Hi", "Hello\nthere")
        assert message.headers["Sender"] == "config@example.com"
        assert message.boundary(0).startswith("ACME_0_")

    def test_defaults_without_config_file(self) -> None:
        """No configuration file means no sender and the default prefix."""
        message = MailMessage("Hi")
        assert message.headers["From"] == ""
        assert message.boundary(0).startswith("MAILCRAFT_0_")


class TestSetters:
    """Fluent setters and validation."""

    def test_setters_chain(self, make_message: MessageFactory) -> None:
        """Setters return the message itself."""
        message = make_message()
        assert message.set_text_body("a").set_html_body("b").set_alt_body("c").set_subject("d") is message

    def test_set_header(self, make_message: MessageFactory) -> None:
        """Custom headers are appended after the defaults."""
        message = make_message().set_header("X-Mailer", "mailcraft")
        assert list(message.headers)[-1] == "X-Mailer"

    def test_header_injection_rejected(self, make_message: MessageFactory) -> None:
        """Header values cannot contain line breaks."""
        with pytest.raises(MailValidationError, match="line breaks"):
            make_message().set_header("Organization", "ACME\r\nBcc: victim@example.com")

    def test_set_reply_to(self, make_message: MessageFactory) -> None:
        """Reply-To and Return-Path are set together."""
        headers = make_message().set_reply_to("help@example.com").headers
        assert headers["Reply-To"] == "help@example.com"
        assert headers["Return-Path"] == "help@example.com"

    def test_set_sender_keeps_reply_to(self, make_message: MessageFactory) -> None:
        """An existing Return-Path is not overwritten by a new sender."""
        message = make_message().set_reply_to("help@example.com")
        message.set_sender("other@example.com")
        assert message.headers["From"] == "other@example.com"
        assert message.headers["Return-Path"] == "help@example.com"

    def test_html_is_wrapped_on_one_line(self, make_message: MessageFactory) -> None:
        """HTML bodies lose line breaks and gain the ltr wrapper."""
        message = make_message().set_html_body("<p>a</p>\r\n<p>b</p>\n")
        assert message.html_body == '<div dir="ltr"><p>a</p><p>b</p></div>'

    def test_empty_html_clears(self, make_message: MessageFactory) -> None:
        """An empty HTML body is not wrapped."""
        message = make_message().set_html_body("<p>a</p>").set_html_body("")
        assert not message.is_html()

    @pytest.mark.parametrize("method", ["set_text_body", "set_html_body", "set_alt_body", "set_text", "set_subject"])
    def test_non_string_rejected(self, make_message: MessageFactory, method: str) -> None:
        """Bodies and subject must be strings."""
        with pytest.raises(MailValidationError, match="must be a string"):
            getattr(make_message(), method)(42)

    def test_predicates(self, make_message: MessageFactory, notes_txt: Path) -> None:
        """Content predicates follow the bodies and attachments."""
        message = make_message()
        assert not (message.is_text() or message.is_html() or message.is_alternative() or message.contains_files())
        message.set_text_body("a")
        assert message.is_text() and not message.is_multi_content()
        message.set_alt_body("alt")
        assert message.is_alternative() and not message.is_multi_content()
        message.add_file(notes_txt)
        assert message.contains_files() and message.is_multi_content()


class TestAttachments:
    """Attachment list management."""

    def test_add_and_contains(self, make_message: MessageFactory, report_pdf: Path) -> None:
        """Added paths are reported by contains_file."""
        message = make_message().add_file(report_pdf)
        assert message.contains_file(report_pdf)
        assert message.contains_file(str(report_pdf))
        assert message.attachments == (str(report_pdf),)

    def test_duplicate_rejected(self, make_message: MessageFactory, report_pdf: Path) -> None:
        """The same path cannot be attached twice."""
        message = make_message().add_file(report_pdf)
        with pytest.raises(DuplicateAttachmentError) as exc_info:
            message.add_file(str(report_pdf))
        assert exc_info.value.path == str(report_pdf)
        assert message.attachments == (str(report_pdf),)

    def test_remove(self, make_message: MessageFactory, report_pdf: Path, notes_txt: Path) -> None:
        """Removing keeps the order of the remaining files."""
        message = make_message().add_file(report_pdf).add_file(notes_txt).remove_file(report_pdf)
        assert message.attachments == (str(notes_txt),)

    def test_remove_unknown(self, make_message: MessageFactory, report_pdf: Path) -> None:
        """Removing a path that is not attached fails."""
        with pytest.raises(AttachmentNotFoundError) as exc_info:
            make_message().remove_file(report_pdf)
        assert exc_info.value.path == str(report_pdf)

    def test_missing_file_is_accepted_until_build(self, make_message: MessageFactory, tmp_path: Path) -> None:
        """Paths are checked only when the tree is built."""
        missing = tmp_path / "later.pdf"
        message = make_message().set_text_body("a").add_file(missing)
        assert message.build().skipped_attachments == (str(missing),)


class TestBuildAndRender:
    """Tree caching and rendering."""

    def test_build_is_cached(self, make_message: MessageFactory) -> None:
        """Building twice returns the same tree."""
        message = make_message(text="Hello")
        assert message.build() is message.build()

    def test_render_is_idempotent(self, make_message: MessageFactory, report_pdf: Path) -> None:
        """Rendering twice yields identical bytes."""
        message = make_message(text="Hello\nWorld").add_file(report_pdf)
        first, second = message.render(), message.render()
        assert first == second

    def test_mutation_rebuilds_with_same_boundaries(self, make_message: MessageFactory) -> None:
        """Content changes rebuild the tree but keep boundary tokens."""
        message = make_message(text="Hello\nWorld")
        first = message.build()
        message.set_text_body("Changed")
        second = message.build()
        assert first is not second
        assert first.boundary == second.boundary == message.boundary(0)

    def test_boundary_indices_distinct(self, make_message: MessageFactory) -> None:
        """Outer and nested boundaries differ and are stable."""
        message = make_message()
        assert message.boundary(0) != message.boundary(1)
        assert message.boundary(1) == message.boundary(1)

    def test_text_only_render(self, make_message: MessageFactory) -> None:
        """A text-only message renders as a single quoted-printable part."""
        rendered = make_message().set_text_body("Hello").render()
        assert rendered.body == b"Hello"
        assert rendered.header_block.startswith(
            'MIME-Version: 1.0\r\nContent-Type: text/plain; charset="UTF-8"\r\n'
            "Content-Transfer-Encoding: quoted-printable\r\nDate: "
        )
        assert rendered.header_block.endswith("\r\n\r\n")
        assert "Bcc" not in rendered.headers
        assert rendered.subject == escape_header_word("Subject")

    def test_multipart_render(self, make_message: MessageFactory) -> None:
        """A multipart message advertises its boundary and no transfer encoding."""
        message = make_message(text="Hello\nWorld")
        rendered = message.render()
        assert message.build().structure == MimeStructure.ALTERNATIVE
        assert f'Content-Type: multipart/alternative; boundary="{message.boundary(0)}"\r\n' in rendered.header_block
        assert "Content-Transfer-Encoding" not in rendered.header_block
        assert rendered.body.endswith(f"--{message.boundary(0)}--".encode())

    def test_empty_message(self, make_message: MessageFactory) -> None:
        """Rendering without content fails."""
        with pytest.raises(EmptyMessageBodyError):
            make_message().render()

    def test_repr(self, make_message: MessageFactory) -> None:
        """The repr summarizes content."""
        assert "text=True" in repr(make_message(text="Hello"))


class TestSend:
    """Sending through a transport."""

    def test_send_delegates_to_dispatcher(self, make_message: MessageFactory) -> None:
        """The rendered message reaches the transport once per recipient."""
        transport = MemoryTransport()
        report = make_message(text="Hello").send(["a@example.com", "b@example.com"], transport)
        assert report.success
        assert [mail.recipient for mail in transport.sent] == ["a@example.com", "b@example.com"]
        assert transport.sent[0].body == transport.sent[1].body

    def test_custom_validator(self, make_message: MessageFactory) -> None:
        """A custom validator replaces the default address check."""
        transport = MemoryTransport()
        report = make_message(text="Hello").send(["local-user"], transport, validator=lambda value: bool(value))
        assert [outcome.recipient for outcome in report.sent] == ["local-user"]
