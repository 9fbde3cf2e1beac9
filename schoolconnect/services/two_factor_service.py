"""
Two-factor login codes.

A login with a correct password but no code issues a fresh six-digit code
(emailed to the user). The second login call must carry that code.
Only a hash of the code is stored.
"""

import logging
import secrets
import time

from sqlalchemy import text

from schoolconnect.core.auth import hash_password, verify_password
from schoolconnect.core.config import get_settings
from schoolconnect.db.database import get_db_session

logger = logging.getLogger(__name__)


def generate_code() -> str:
    return f"{secrets.randbelow(1_000_000):06d}"


def issue_code(user_id: int) -> str:
    """Invalidate older codes and store a new one. Returns the plain code."""
    settings = get_settings()
    code = generate_code()
    expires_at = int(time.time()) + settings.two_factor_code_ttl_minutes * 60

    with get_db_session() as db:
        db.execute(
            text("UPDATE two_factor_codes SET consumed = TRUE WHERE user_id = :uid AND consumed = FALSE"),
            {"uid": user_id}
        )
        db.execute(
            text("""
                INSERT INTO two_factor_codes (user_id, code_hash, expires_at, attempts, consumed)
                VALUES (:uid, :code_hash, :expires_at, 0, FALSE)
            """),
            {"uid": user_id, "code_hash": hash_password(code), "expires_at": expires_at}
        )

    logger.info("Issued two-factor code for user %s", user_id)
    return code


def verify_code(user_id: int, code: str) -> bool:
    """
    Check a submitted code against the newest live code.

    A matching code is consumed. Wrong guesses count against the code and
    burn it after two_factor_max_attempts.
    """
    settings = get_settings()

    with get_db_session() as db:
        row = db.execute(
            text("""
                SELECT code_id, code_hash, expires_at, attempts FROM two_factor_codes
                WHERE user_id = :uid AND consumed = FALSE
                ORDER BY code_id DESC LIMIT 1
            """),
            {"uid": user_id}
        ).mappings().fetchone()

        if not row:
            return False

        if row["expires_at"] < int(time.time()) or row["attempts"] >= settings.two_factor_max_attempts:
            db.execute(
                text("UPDATE two_factor_codes SET consumed = TRUE WHERE code_id = :cid"),
                {"cid": row["code_id"]}
            )
            return False

        if verify_password(code, row["code_hash"]):
            db.execute(
                text("UPDATE two_factor_codes SET consumed = TRUE WHERE code_id = :cid"),
                {"cid": row["code_id"]}
            )
            return True

        attempts = row["attempts"] + 1
        db.execute(
            text("UPDATE two_factor_codes SET attempts = :attempts, consumed = :burned WHERE code_id = :cid"),
            {
                "attempts": attempts,
                "burned": attempts >= settings.two_factor_max_attempts,
                "cid": row["code_id"]
            }
        )

    logger.warning("Invalid two-factor code for user %s (attempt %s)", user_id, attempts)
    return False
