"""Utilities module."""

from .crypt import encrypt, decrypt

__all__ = ['encrypt', 'decrypt']
