"""One-time password core: credential URI parsing, code generation and QR decoding."""

__version__ = "1.0.0"

__all__ = ["__version__"]
