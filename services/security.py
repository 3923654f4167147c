"""Password hashing with bcrypt (salted, adaptive work factor)."""

from __future__ import annotations

import logging

import bcrypt

from config_env import BCRYPT_ROUNDS

logger = logging.getLogger(__name__)

# bcrypt ignores input past 72 bytes; newer releases raise instead.
_MAX_PASSWORD_BYTES = 72


def _encode(plaintext: str) -> bytes:
    return plaintext.encode("utf-8")[:_MAX_PASSWORD_BYTES]


def hash_password(plaintext: str, rounds: int = BCRYPT_ROUNDS) -> str:
    return bcrypt.hashpw(_encode(plaintext), bcrypt.gensalt(rounds=rounds)).decode("ascii")


def verify_password(plaintext: str, digest: str) -> bool:
    if not plaintext or not digest:
        return False
    try:
        return bcrypt.checkpw(_encode(plaintext), digest.encode("ascii"))
    except (ValueError, UnicodeEncodeError):
        logger.warning("Stored password digest is not a valid bcrypt hash")
        return False
