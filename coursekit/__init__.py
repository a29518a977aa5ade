"""Course-to-Notion block compiler service."""

__version__ = "2.1.0"
