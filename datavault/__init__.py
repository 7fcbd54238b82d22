"""DataVault: personal data vault with consent lifecycle and audit trail."""

__version__ = "1.0.0"
