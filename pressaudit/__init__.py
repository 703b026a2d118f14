"""PressAudit: news coverage audits for brands."""

__version__ = "1.0.0"

__all__ = ["__version__"]
