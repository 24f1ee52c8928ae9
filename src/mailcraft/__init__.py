"""mailcraft: compose, serialize and deliver MIME email messages.

Examples:
    >>> import mailcraft
    >>> message = mailcraft.MailMessage(
    ...     "Hello",
    ...     "Line one\\nLine two",
    ...     settings=mailcraft.SenderSettings(address="robot@example.com"),
    ... )
    >>> message.is_multi_content()
    True
"""

from mailcraft.config import (
    ConfigError,
    MailcraftError,
    clear_config,
    get_config,
    load_config,
    require_config,
)
from mailcraft.logging import LogManager, get_logger, init_logging
from mailcraft.mail import (
    DeliveryPolicy,
    DeliveryReport,
    MailDispatcher,
    MailError,
    MailMessage,
    MailTransport,
    MemoryTransport,
    SenderSettings,
)
from mailcraft.meta import __app_name__, __author__, __version__

__all__ = [
    "ConfigError",
    "DeliveryPolicy",
    "DeliveryReport",
    "LogManager",
    "MailDispatcher",
    "MailError",
    "MailMessage",
    "MailTransport",
    "MailcraftError",
    "MemoryTransport",
    "SenderSettings",
    "__app_name__",
    "__author__",
    "__version__",
    "clear_config",
    "get_config",
    "get_logger",
    "init_logging",
    "load_config",
    "require_config",
]
