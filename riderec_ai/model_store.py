"""Key-value persistence of one trained model per rider."""
from __future__ import annotations

import io
import logging
import os
import tempfile
import threading
import weakref
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import joblib

from .errors import ModelNotFoundError, ModelStoreError

logger = logging.getLogger(__name__)


class RiderLocks:
    """Hands out one writer lock per rider; different riders never contend.

    Locks are held weakly, so an entry disappears once no writer holds it.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: weakref.WeakValueDictionary[int, threading.Lock] = weakref.WeakValueDictionary()

    def for_rider(self, rider_id: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(rider_id)
            if lock is None:
                lock = self._locks[rider_id] = threading.Lock()
            return lock

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


class ModelStore(ABC):
    """Stores opaque model artifacts addressed by rider id.

    Writers (``save`` and ``invalidate``) for the same rider are serialized;
    readers never take the lock and must treat a missing artifact as absent.
    """

    def __init__(self) -> None:
        self._locks = RiderLocks()

    def writer_lock(self, rider_id: int) -> threading.Lock:
        return self._locks.for_rider(rider_id)

    @abstractmethod
    def exists(self, rider_id: int) -> bool:
        ...

    @abstractmethod
    def load(self, rider_id: int) -> Any:
        """Return the stored model or raise ``ModelNotFoundError``."""

    @abstractmethod
    def save(self, rider_id: int, model: Any) -> None:
        ...

    @abstractmethod
    def invalidate(self, rider_id: int) -> bool:
        """Delete the rider's model; return False when there was nothing to delete."""


class FileModelStore(ModelStore):
    """joblib artifacts in a directory, replaced atomically on every save."""

    def __init__(self, model_dir: Path) -> None:
        super().__init__()
        self.model_dir = Path(model_dir)

    def path_for(self, rider_id: int) -> Path:
        return self.model_dir / f"rider_{rider_id}_driver_model.joblib"

    def exists(self, rider_id: int) -> bool:
        return self.path_for(rider_id).is_file()

    def load(self, rider_id: int) -> Any:
        path = self.path_for(rider_id)
        try:
            return joblib.load(path)
        except FileNotFoundError as exc:
            raise ModelNotFoundError(rider_id) from exc
        except Exception as exc:
            raise ModelStoreError(f"Unreadable model artifact for rider {rider_id} at {path}") from exc

    def save(self, rider_id: int, model: Any) -> None:
        path = self.path_for(rider_id)
        with self.writer_lock(rider_id):
            try:
                self.model_dir.mkdir(parents=True, exist_ok=True)
                # Same directory as the target so the rename stays on one filesystem.
                fd, tmp_name = tempfile.mkstemp(prefix=f"{path.stem}.", suffix=".tmp", dir=self.model_dir)
                os.close(fd)
            except OSError as exc:
                raise ModelStoreError(f"Cannot prepare model directory {self.model_dir}") from exc
            tmp_path = Path(tmp_name)
            try:
                joblib.dump(model, tmp_path)
                os.replace(tmp_path, path)
            except OSError as exc:
                raise ModelStoreError(f"Cannot write model artifact for rider {rider_id} at {path}") from exc
            finally:
                tmp_path.unlink(missing_ok=True)
        logger.debug("Stored model for rider %s at %s", rider_id, path)

    def invalidate(self, rider_id: int) -> bool:
        path = self.path_for(rider_id)
        with self.writer_lock(rider_id):
            try:
                path.unlink()
            except FileNotFoundError:
                logger.debug("No model to invalidate for rider %s", rider_id)
                return False
            except OSError as exc:
                logger.error("Error deleting model file for rider %s at %s", rider_id, path)
                raise ModelStoreError(f"Cannot delete model artifact for rider {rider_id}") from exc
        logger.info("Invalidated model for rider %s", rider_id)
        return True


class InMemoryModelStore(ModelStore):
    """Keeps serialized artifacts in a dictionary, for tests and single-process use."""

    def __init__(self) -> None:
        super().__init__()
        self._blobs: dict[int, bytes] = {}

    def exists(self, rider_id: int) -> bool:
        return rider_id in self._blobs

    def load(self, rider_id: int) -> Any:
        blob = self._blobs.get(rider_id)
        if blob is None:
            raise ModelNotFoundError(rider_id)
        try:
            return joblib.load(io.BytesIO(blob))
        except Exception as exc:
            raise ModelStoreError(f"Unreadable model artifact for rider {rider_id}") from exc

    def save(self, rider_id: int, model: Any) -> None:
        buffer = io.BytesIO()
        joblib.dump(model, buffer)
        with self.writer_lock(rider_id):
            self._blobs[rider_id] = buffer.getvalue()

    def invalidate(self, rider_id: int) -> bool:
        with self.writer_lock(rider_id):
            removed = self._blobs.pop(rider_id, None)
        if removed is None:
            logger.debug("No model to invalidate for rider %s", rider_id)
            return False
        logger.info("Invalidated model for rider %s", rider_id)
        return True
