"""Package metadata for mailcraft."""

__app_name__ = "mailcraft"
__version__ = "0.4.0"
__author__ = "Mailcraft Maintainers"

__all__ = ["__app_name__", "__author__", "__version__"]
