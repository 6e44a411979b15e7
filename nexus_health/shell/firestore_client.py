"""Firestore Client - Persistence for profiles and daily logs.

This module handles all database I/O for health tracking.
All I/O is contained here; business logic is in the core module.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Callable, Literal

from google.cloud import firestore

from ..core.logs import apply_patch, empty_log, to_snapshot
from ..core.metrics import calculate_health_metrics
from ..core.models import DailyLog, DatedLog, DaySnapshot, LogPatch, StoredProfile, UserProfile
from ..core.reports import build_date_range, pad_by_date


logger = logging.getLogger(__name__)

SyncStatus = Literal["idle", "syncing", "synced", "error"]
SyncListener = Callable[[SyncStatus], None]

_LOG_FIELDS = ("calories_in", "calories_out", "exercise_minutes", "sleep_hours", "water_ml", "flush_done")


@dataclass
class FirestoreConfig:
    """Configuration for Firestore client.

    Attributes:
        project_id: GCP project ID (None for default)
        database: Firestore database name (None for default database)
    """

    project_id: str | None = None
    database: str | None = None


def _log_from_doc(data: dict[str, Any]) -> DailyLog:
    """Build a DailyLog from a stored document, ignoring bookkeeping fields."""
    return DailyLog(**{k: data[k] for k in _LOG_FIELDS if k in data})


def _log_date_from_doc(data: dict[str, Any]) -> date:
    value = data["log_date"]
    if isinstance(value, str):
        return date.fromisoformat(value)
    return value


def _log_to_doc(user_id: str, log_date: date, log: DailyLog) -> dict[str, Any]:
    data = log.model_dump()
    data["user_id"] = user_id
    # Stored as ISO string so range and "in" queries compare lexically
    data["log_date"] = log_date.isoformat()
    data["updated_at"] = datetime.now(timezone.utc)
    return data


def _patch_in_transaction(
    transaction: firestore.Transaction,
    log_ref: firestore.DocumentReference,
    user_id: str,
    log_date: date,
    patch: LogPatch,
) -> DailyLog:
    """Read today's log, add the patch and write it back in one transaction.

    A missing document is a fresh day. Read errors propagate, so nothing is
    written.
    """
    doc = log_ref.get(transaction=transaction)
    current = _log_from_doc(doc.to_dict()) if doc.exists else empty_log()
    updated = apply_patch(current, patch)
    transaction.set(log_ref, _log_to_doc(user_id, log_date, updated))
    return updated


class HealthFirestoreClient:
    """Client for persisting profiles and daily logs to Firestore.

    Document structure per user:
        users/{user_id}/
            profile/current: { user_id, profile: {...}, metrics: {...} }
            logs/{YYYY-MM-DD}: { user_id, log_date, calories_in, ... }
            food_frequency/{food_id}: { use_count, last_used }

    Sync status listeners are owned by the client instance; each write
    reports "syncing" then "synced" or "error".
    """

    def __init__(self, config: FirestoreConfig | None = None) -> None:
        """Initialize Firestore client.

        Args:
            config: Firestore configuration
        """
        self.config = config or FirestoreConfig()
        self._client: firestore.Client | None = None
        self._listeners: set[SyncListener] = set()
        self.status: SyncStatus = "idle"

    @property
    def client(self) -> firestore.Client:
        """Lazy initialization of Firestore client."""
        if self._client is None:
            kwargs: dict[str, Any] = {}
            if self.config.project_id:
                kwargs["project"] = self.config.project_id
            if self.config.database:
                kwargs["database"] = self.config.database
            self._client = firestore.Client(**kwargs)
        return self._client

    # ==================== Sync Status ====================

    def subscribe(self, listener: SyncListener) -> Callable[[], None]:
        """Register a sync status listener.

        Args:
            listener: Called with the new status on every change

        Returns:
            Function that removes the listener
        """
        self._listeners.add(listener)
        return lambda: self._listeners.discard(listener)

    def _set_status(self, status: SyncStatus) -> None:
        self.status = status
        for listener in list(self._listeners):
            try:
                listener(status)
            except Exception as e:
                logger.error("Sync listener failed on %s: %s", status, str(e))

    # ==================== References ====================

    def _user_ref(self, user_id: str) -> firestore.DocumentReference:
        """Get reference to user document."""
        return self.client.collection("users").document(user_id)

    def _profile_ref(self, user_id: str) -> firestore.DocumentReference:
        """Get reference to user profile document."""
        return self._user_ref(user_id).collection("profile").document("current")

    def _log_ref(self, user_id: str, log_date: date) -> firestore.DocumentReference:
        """Get reference to daily log document."""
        return self._user_ref(user_id).collection("logs").document(log_date.isoformat())

    def _food_ref(self, user_id: str, food_id: str) -> firestore.DocumentReference:
        """Get reference to a food frequency counter."""
        return self._user_ref(user_id).collection("food_frequency").document(food_id)

    # ==================== Profile Operations ====================

    def get_profile(self, user_id: str) -> StoredProfile | None:
        """Fetch a user's profile and derived metrics.

        Args:
            user_id: The user's ID

        Returns:
            StoredProfile if found, None otherwise
        """
        logger.debug("Fetching profile for user: %s", user_id[:8])
        try:
            doc = self._profile_ref(user_id).get()
            if not doc.exists:
                return None
            data = doc.to_dict()
            data.pop("user_id", None)
            return StoredProfile(**data)
        except Exception as e:
            logger.error("Failed to fetch profile: %s", str(e))
            return None

    def save_profile(self, user_id: str, profile: UserProfile) -> StoredProfile | None:
        """Replace a user's profile, recomputing the metrics.

        The original creation time survives re-onboarding.

        Args:
            user_id: The user's ID
            profile: Body metrics from onboarding

        Returns:
            The stored profile if successful, None otherwise
        """
        logger.info("Saving profile for user: %s", user_id[:8])
        stored = StoredProfile(profile=profile, metrics=calculate_health_metrics(profile))
        existing = self.get_profile(user_id)
        if existing is not None:
            stored = stored.model_copy(update={"created_at": existing.created_at})

        self._set_status("syncing")
        try:
            data = stored.model_dump()
            data["user_id"] = user_id
            self._profile_ref(user_id).set(data)
        except Exception as e:
            logger.error("Failed to save profile: %s", str(e))
            self._set_status("error")
            return None

        self._set_status("synced")
        return stored

    # ==================== Daily Log Operations ====================

    def get_log(self, user_id: str, log_date: date) -> DailyLog | None:
        """Fetch a daily log.

        Args:
            user_id: The user's ID
            log_date: Date of the log

        Returns:
            DailyLog if found, None otherwise
        """
        logger.debug("Fetching log for %s on %s", user_id[:8], log_date)
        try:
            doc = self._log_ref(user_id, log_date).get()
            if not doc.exists:
                return None
            return _log_from_doc(doc.to_dict())
        except Exception as e:
            logger.error("Failed to fetch log: %s", str(e))
            return None

    def save_log(self, user_id: str, log_date: date, log: DailyLog) -> bool:
        """Save a daily log.

        Args:
            user_id: The user's ID
            log_date: Date of the log
            log: The log to save

        Returns:
            True if successful
        """
        logger.info("Saving log for %s on %s", user_id[:8], log_date)
        self._set_status("syncing")
        try:
            self._log_ref(user_id, log_date).set(_log_to_doc(user_id, log_date, log))
        except Exception as e:
            logger.error("Failed to save log: %s", str(e))
            self._set_status("error")
            return False

        self._set_status("synced")
        return True

    def patch_log(self, user_id: str, patch: LogPatch, today: date | None = None) -> DailyLog | None:
        """Apply a delta patch to today's log.

        Only today's log is writable; earlier days are read-only. The read
        and the write run in one transaction, so concurrent patches add up
        and a failed read never overwrites the stored totals.

        Args:
            user_id: The user's ID
            patch: Deltas to apply
            today: Today's date (defaults to date.today())

        Returns:
            Updated DailyLog if successful, None otherwise
        """
        if today is None:
            today = date.today()

        logger.info("Patching log for %s on %s", user_id[:8], today)
        self._set_status("syncing")
        try:
            run = firestore.transactional(_patch_in_transaction)
            updated = run(
                self.client.transaction(),
                self._log_ref(user_id, today),
                user_id,
                today,
                patch,
            )
        except Exception as e:
            logger.error("Failed to patch log: %s", str(e))
            self._set_status("error")
            return None

        self._set_status("synced")
        return updated

    def reset_log(self, user_id: str, today: date | None = None) -> DailyLog | None:
        """Reset today's log to a fresh day.

        Args:
            user_id: The user's ID
            today: Today's date (defaults to date.today())

        Returns:
            The fresh DailyLog if successful, None otherwise
        """
        if today is None:
            today = date.today()

        fresh = empty_log()
        if self.save_log(user_id, today, fresh):
            return fresh
        return None

    def get_logs_range(self, user_id: str, start_date: date, end_date: date) -> list[DatedLog]:
        """Fetch logs for a date range.

        Args:
            user_id: The user's ID
            start_date: Start of range (inclusive)
            end_date: End of range (inclusive)

        Returns:
            List of DatedLogs found (may be empty)
        """
        logger.debug(
            "Fetching logs for %s from %s to %s", user_id[:8], start_date, end_date
        )
        logs: list[DatedLog] = []

        try:
            logs_ref = self._user_ref(user_id).collection("logs")
            query = (
                logs_ref.where("log_date", ">=", start_date.isoformat())
                .where("log_date", "<=", end_date.isoformat())
                .order_by("log_date")
            )

            for doc in query.stream():
                data = doc.to_dict()
                logs.append(DatedLog(log_date=_log_date_from_doc(data), log=_log_from_doc(data)))

            logger.debug("Found %d logs in range", len(logs))
            return logs
        except Exception as e:
            logger.error("Failed to fetch logs range: %s", str(e))
            return []

    def get_recent_logs(self, user_id: str, day_count: int, end: date | None = None) -> list[DatedLog]:
        """Fetch the last `day_count` days, newest first, padded with empty days.

        Args:
            user_id: The user's ID
            day_count: Window length in days
            end: Last day of the window (defaults to today)

        Returns:
            Exactly `day_count` DatedLogs
        """
        if end is None:
            end = date.today()

        dates = build_date_range(end, day_count)
        found = self.get_logs_range(user_id, dates[-1], dates[0]) if dates else []
        return pad_by_date(found, dates)

    def get_recent_snapshots(self, user_id: str, day_count: int, end: date | None = None) -> list[DaySnapshot]:
        """Same window as get_recent_logs, projected for scoring."""
        return [to_snapshot(entry.log) for entry in self.get_recent_logs(user_id, day_count, end)]

    # ==================== Leaderboard Operations ====================

    def load_leaderboard_inputs(
        self, day_count: int, end: date | None = None
    ) -> tuple[dict[str, list[DaySnapshot]], dict[str, StoredProfile]]:
        """Fetch every user's logs in the window plus all profiles.

        Args:
            day_count: Window length in days
            end: Last day of the window (defaults to today)

        Returns:
            Tuple of (snapshots per user id, profile per user id); both empty
            when the query fails
        """
        if end is None:
            end = date.today()

        dates = [d.isoformat() for d in build_date_range(end, day_count)]
        user_days: dict[str, list[DaySnapshot]] = {}
        profiles: dict[str, StoredProfile] = {}

        try:
            log_query = self.client.collection_group("logs").where("log_date", "in", dates)
            for doc in log_query.stream():
                data = doc.to_dict()
                user_days.setdefault(data["user_id"], []).append(to_snapshot(_log_from_doc(data)))

            for doc in self.client.collection_group("profile").stream():
                data = doc.to_dict()
                user_id = data.pop("user_id", None)
                if user_id is None:
                    continue
                profiles[user_id] = StoredProfile(**data)

            logger.debug("Leaderboard inputs: %d users with logs, %d profiles", len(user_days), len(profiles))
            return user_days, profiles
        except Exception as e:
            logger.error("Failed to load leaderboard inputs: %s", str(e))
            return {}, {}

    # ==================== Food Frequency Operations ====================

    def get_food_frequency(self, user_id: str) -> dict[str, int]:
        """Fetch how often the user logged each catalogue food.

        Args:
            user_id: The user's ID

        Returns:
            Use count per food id (empty on failure)
        """
        logger.debug("Fetching food frequency for %s", user_id[:8])
        try:
            counts: dict[str, int] = {}
            for doc in self._user_ref(user_id).collection("food_frequency").stream():
                counts[doc.id] = doc.to_dict().get("use_count", 0)
            return counts
        except Exception as e:
            logger.error("Failed to fetch food frequency: %s", str(e))
            return {}

    def bump_food_frequency(self, user_id: str, food_id: str) -> bool:
        """Count one more use of a catalogue food.

        Args:
            user_id: The user's ID
            food_id: ID of the catalogue food

        Returns:
            True if successful
        """
        try:
            self._food_ref(user_id, food_id).set(
                {
                    "use_count": firestore.Increment(1),
                    "last_used": datetime.now(timezone.utc),
                },
                merge=True,
            )
            return True
        except Exception as e:
            logger.error("Failed to bump food frequency: %s", str(e))
            return False
