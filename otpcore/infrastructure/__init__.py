"""Image decoding adapters (Pillow transforms and the QR reader)."""
