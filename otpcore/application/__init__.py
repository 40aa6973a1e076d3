"""Code generation, verification and use cases built on the OTP domain."""
