"""Quillpost - OTP based authentication core for the Quillpost blog backend."""

__version__ = "1.0.0"
