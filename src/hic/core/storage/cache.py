"""Insight cache — short-lived storage for generated analyses.

One row per (subject, analysis type). Writers insert-or-replace, so
concurrent writers for the same key resolve last-write-wins; readers treat
an expired row exactly like a missing one.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from hic.core.storage.database import HealthDatabase
from hic.core.storage.encryption import EncryptionError, FieldEncryptor
from hic.core.storage.models import CachedResult

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600


class CacheError(Exception):
    """Raised when cache operations fail."""


class InsightCache:
    """Keyed cache of generated insight payloads.

    Usage::

        db = HealthDatabase(":memory:")
        db.initialize()
        cache = InsightCache(db, encryptor=FieldEncryptor(key="..."))

        cache.put("subject-1", "health_score", payload, ttl_seconds=3600)
        hit = cache.get("subject-1", "health_score")  # CachedResult | None
    """

    def __init__(
        self,
        database: HealthDatabase,
        encryptor: FieldEncryptor | None = None,
        default_ttl_seconds: int = DEFAULT_TTL_SECONDS,
    ) -> None:
        self._db = database
        self._enc = encryptor
        self.default_ttl_seconds = default_ttl_seconds

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------

    def _encode(self, payload: dict[str, Any]) -> tuple[str, bool]:
        if self._enc is None:
            return json.dumps(payload, separators=(",", ":")), False
        return self._enc.encrypt(payload), True

    def _decode(self, raw: str, encrypted: bool) -> dict[str, Any]:
        if not encrypted:
            return json.loads(raw)
        if self._enc is None:
            raise CacheError("Cached payload is encrypted but no encryption key is configured")
        return self._enc.decrypt(raw)

    # ------------------------------------------------------------------
    # Read / write
    # ------------------------------------------------------------------

    def put(
        self,
        subject_id: str,
        analysis_type: str,
        payload: dict[str, Any],
        ttl_seconds: int | None = None,
    ) -> CachedResult:
        """Store ``payload`` as the current insight for (subject, analysis type).

        Raises:
            CacheError: If the payload cannot be encoded or written.
        """
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        generated_at = self._now()
        expires_at = generated_at + timedelta(seconds=ttl)

        try:
            raw, encrypted = self._encode(payload)
        except (EncryptionError, TypeError, ValueError) as exc:
            raise CacheError(f"Cannot encode payload: {exc}") from exc

        try:
            with self._db.lock:
                conn = self._db.connection
                conn.execute(
                    """INSERT OR REPLACE INTO insight_cache
                       (id, subject_id, analysis_type, payload_enc, encrypted,
                        generated_at, expires_at)
                       VALUES (?, ?, ?, ?, ?, ?, ?)""",
                    (
                        str(uuid.uuid4()),
                        subject_id,
                        analysis_type,
                        raw,
                        1 if encrypted else 0,
                        generated_at.isoformat(),
                        expires_at.isoformat(),
                    ),
                )
                conn.commit()
        except sqlite3.Error as exc:
            raise CacheError(f"Cache write failed: {exc}") from exc

        logger.debug(
            "Cached %s insight for %s until %s", analysis_type, subject_id, expires_at
        )
        return CachedResult(
            subject_id=subject_id,
            analysis_type=analysis_type,
            payload=payload,
            generated_at=generated_at,
            expires_at=expires_at,
        )

    def get(self, subject_id: str, analysis_type: str) -> CachedResult | None:
        """Return the live entry, or None when missing or expired."""
        entry = self.get_latest(subject_id, analysis_type)
        if entry is None or entry.is_expired(self._now()):
            return None
        return entry

    def get_latest(self, subject_id: str, analysis_type: str) -> CachedResult | None:
        """Return the stored entry even when expired (used as prior insight).

        Raises:
            CacheError: If the row cannot be read or decoded.
        """
        try:
            with self._db.lock:
                row = self._db.connection.execute(
                    """SELECT payload_enc, encrypted, generated_at, expires_at
                       FROM insight_cache
                       WHERE subject_id = ? AND analysis_type = ?""",
                    (subject_id, analysis_type),
                ).fetchone()
        except sqlite3.Error as exc:
            raise CacheError(f"Cache read failed: {exc}") from exc

        if row is None:
            return None

        try:
            payload = self._decode(row["payload_enc"], bool(row["encrypted"]))
        except (EncryptionError, ValueError) as exc:
            raise CacheError(f"Cannot decode cached payload: {exc}") from exc

        return CachedResult(
            subject_id=subject_id,
            analysis_type=analysis_type,
            payload=payload,
            generated_at=datetime.fromisoformat(row["generated_at"]),
            expires_at=datetime.fromisoformat(row["expires_at"]),
        )

    def invalidate(self, subject_id: str, analysis_type: str | None = None) -> int:
        """Delete entries for a subject (optionally one analysis type)."""
        query = "DELETE FROM insight_cache WHERE subject_id = ?"
        params: list[Any] = [subject_id]
        if analysis_type:
            query += " AND analysis_type = ?"
            params.append(analysis_type)
        with self._db.lock:
            cursor = self._db.connection.execute(query, params)
            self._db.connection.commit()
        return cursor.rowcount

    def purge_expired(self) -> int:
        """Delete every expired entry; returns the number removed."""
        with self._db.lock:
            cursor = self._db.connection.execute(
                "DELETE FROM insight_cache WHERE expires_at <= ?",
                (self._now().isoformat(),),
            )
            self._db.connection.commit()
        if cursor.rowcount:
            logger.info("Purged %d expired insight(s)", cursor.rowcount)
        return cursor.rowcount

    def rotate_keys(self) -> int:
        """Re-encrypt every encrypted entry under the primary key.

        Rows no configured key can read are left for expiry. Returns the
        number of rows rewritten.
        """
        if self._enc is None or self._enc.key_count < 2:
            return 0
        with self._db.lock:
            conn = self._db.connection
            rows = conn.execute(
                "SELECT id, payload_enc FROM insight_cache WHERE encrypted = 1"
            ).fetchall()
            rotated = 0
            for row in rows:
                try:
                    token = self._enc.rotate(row["payload_enc"])
                except EncryptionError as exc:
                    logger.warning("Skipping unreadable cache row %s: %s", row["id"], exc)
                    continue
                conn.execute(
                    "UPDATE insight_cache SET payload_enc = ? WHERE id = ?", (token, row["id"])
                )
                rotated += 1
            conn.commit()
        if rotated:
            logger.info("Re-encrypted %d cached insight(s) under the primary key", rotated)
        return rotated
