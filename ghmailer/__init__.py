"""Email notifications for source-code push webhooks."""

__version__ = "0.1.0"
