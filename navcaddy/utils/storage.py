"""
Shot history storage.

Persistence contract for the append-only shot log and a JSON file
implementation of it.
"""

import asyncio
import json
import logging
import os
import shutil
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from navcaddy.models.shot import Shot, ensure_aware, utc_now

logger = logging.getLogger(__name__)


class ShotHistoryCorruptError(Exception):
    """The shot history file exists but cannot be read as a shot log."""


class ShotRepository(ABC):
    """Where shots are recorded and read back from."""

    @abstractmethod
    async def record_shot(self, shot: Shot) -> None:
        """Append a shot to the log."""

    @abstractmethod
    async def get_recent_shots(self, days: int) -> List[Shot]:
        """Shots recorded within the last `days` days, oldest first."""

    @abstractmethod
    async def get_shots_with_pressure(self) -> List[Shot]:
        """All retained shots hit under pressure, oldest first."""

    @abstractmethod
    async def clear_memory(self) -> None:
        """Delete the entire shot history."""

    @abstractmethod
    async def enforce_retention_policy(self) -> int:
        """Delete shots older than the retention window. Returns the number removed."""


class JsonShotStorage(ShotRepository):
    """
    Shot log kept in a single JSON file.

    File I/O runs in a worker thread; writes are serialized with a lock
    so concurrent record_shot calls never drop each other's shots.
    """

    def __init__(
        self,
        file_path: str,
        retention_days: int = 90,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize shot storage.

        Args:
            file_path: Path to the shot history JSON file
            retention_days: Age after which shots are deleted
            clock: Returns the current time (UTC); injectable for tests
        """
        self.file_path = file_path
        self.retention_days = retention_days
        self.clock = clock or utc_now
        self._write_lock = asyncio.Lock()

        directory = os.path.dirname(file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        logger.info(f"Initialized JsonShotStorage with file_path={file_path}")

    @property
    def backup_path(self) -> str:
        return f"{self.file_path}.backup"

    @staticmethod
    def _read(path: str) -> List[Shot]:
        """
        Parse one history file.

        Raises:
            ShotHistoryCorruptError: If the file is unreadable or not a shot log
        """
        try:
            with open(path, 'r') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ShotHistoryCorruptError(f"Cannot read shot history {path}: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("shots", []), list):
            raise ShotHistoryCorruptError(f"Shot history {path} is not a shot log")

        shots = []
        for item in data.get("shots", []):
            try:
                shots.append(Shot.from_dict(item))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping invalid shot record: {e}")
        return shots

    def _load(self, strict: bool = False) -> List[Shot]:
        """
        Load the shot log, restoring from backup if the main file is corrupt.

        Args:
            strict: Raise instead of returning an empty log when nothing can
                be recovered. Write paths load strictly so they never
                overwrite a history they could not read.
        """
        if not os.path.exists(self.file_path):
            return []

        try:
            return self._read(self.file_path)
        except ShotHistoryCorruptError as e:
            logger.error(f"Failed to load shot history: {e}")
            error = e

        if os.path.exists(self.backup_path):
            logger.warning(f"Attempting to restore from backup: {self.backup_path}")
            try:
                shots = self._read(self.backup_path)
                shutil.copy(self.backup_path, self.file_path)
                logger.info("Successfully restored shot history from backup")
                return shots
            except (OSError, ShotHistoryCorruptError) as e:
                logger.error(f"Backup restoration failed: {e}")
        else:
            logger.warning("No backup file found for shot history")

        if strict:
            raise error
        return []

    def _save(self, shots: List[Shot]) -> None:
        data = {
            "version": "1.0.0",
            "last_updated": self.clock().isoformat(),
            "shots": [shot.to_dict() for shot in shots]
        }
        temp_path = f"{self.file_path}.tmp"
        try:
            with open(temp_path, 'w') as f:
                json.dump(data, f, indent=2)
            os.replace(temp_path, self.file_path)
            shutil.copy(self.file_path, self.backup_path)
            logger.debug(f"Saved {len(shots)} shots to {self.file_path}")
        except OSError as e:
            logger.error(f"Failed to save shot history to {self.file_path}: {e}")
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise

    async def get_all_shots(self) -> List[Shot]:
        shots = await asyncio.to_thread(self._load)
        return sorted(shots, key=lambda s: s.timestamp)

    async def record_shot(self, shot: Shot) -> None:
        async with self._write_lock:
            shots = await asyncio.to_thread(self._load, True)
            shots.append(shot)
            await asyncio.to_thread(self._save, shots)
        logger.info(
            f"Recorded shot {shot.shot_id} ({shot.club.club_id}, "
            f"miss={shot.miss_direction.value if shot.miss_direction else 'none'})"
        )

    async def get_recent_shots(self, days: int) -> List[Shot]:
        cutoff = self.clock() - timedelta(days=days)
        return [s for s in await self.get_all_shots() if s.timestamp >= cutoff]

    async def get_shots_with_pressure(self) -> List[Shot]:
        return [s for s in await self.get_all_shots() if s.pressure_context.has_pressure]

    async def clear_memory(self) -> None:
        async with self._write_lock:
            await asyncio.to_thread(self._save, [])
        logger.info("Cleared shot history")

    async def enforce_retention_policy(self) -> int:
        cutoff = ensure_aware(self.clock()) - timedelta(days=self.retention_days)
        async with self._write_lock:
            shots = await asyncio.to_thread(self._load, True)
            kept = [s for s in shots if s.timestamp >= cutoff]
            removed = len(shots) - len(kept)
            if removed:
                await asyncio.to_thread(self._save, kept)
        logger.info(f"Retention policy removed {removed} shots older than {self.retention_days} days")
        return removed


# Design Rationale and Trade-offs:
#
# 1. Why a single JSON file for shot history?
#    - Histories are small (90-day retention) and read whole for aggregation
#    - Trade-off: Every append rewrites the file
#
# 2. Why atomic writes plus a mirrored .backup?
#    - os.replace never leaves a half-written log
#    - The backup recovers from external corruption without losing shots
#    - Trade-off: Twice the disk space
#
# 3. Why refuse to write when the history cannot be read?
#    - Appending to an empty fallback would overwrite the real history
#    - Reads still return an empty log so queries keep working
#    - Trade-off: Recording fails until the file is repaired
