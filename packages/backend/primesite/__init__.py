"""PrimeSite backend: dual-write site drafts and payment-gated publishing."""

__version__ = "0.1.0"
