"""
Utility modules for the Ekklesia backend.

This package contains shared utilities used across the application:
- crypto: Event secret hashing and verification (bcrypt)
- normalize: Phone number and name keys for duplicate detection
- websocket: Per-event WebSocket connection registry
- logging_config: Logger setup
"""

from backend.src.utils.crypto import hash_secret, verify_secret

__all__ = [
    "hash_secret",
    "verify_secret",
]
