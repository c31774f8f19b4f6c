"""Restore progress — stage checkpoints exposed as an observable value."""

from __future__ import annotations

import threading
from enum import StrEnum
from typing import Callable

from loguru import logger


class RestoreStage(StrEnum):
    """Linear restore state machine; never moves backwards."""

    IDLE = "idle"
    EXTRACTING = "extracting"
    VALIDATING = "validating"
    RESTORING_CERTIFICATES = "restoring_certificates"
    RESTORING_SOURCES = "restoring_sources"
    RESTORING_SIGNED_APPS = "restoring_signed_apps"
    RESTORING_IMPORTED_APPS = "restoring_imported_apps"
    RESTORING_FRAMEWORKS = "restoring_frameworks"
    RESTORING_ARCHIVES = "restoring_archives"
    RESTORING_EXTRA_FILES = "restoring_extra_files"
    RESTORING_DATABASE = "restoring_database"
    RESTORING_SETTINGS = "restoring_settings"
    COMPLETE = "complete"


# Fraction reported when a stage is entered
STAGE_CHECKPOINTS: dict[RestoreStage, float] = {
    RestoreStage.IDLE: 0.0,
    RestoreStage.EXTRACTING: 0.1,
    RestoreStage.VALIDATING: 0.2,
    RestoreStage.RESTORING_CERTIFICATES: 0.3,
    RestoreStage.RESTORING_SOURCES: 0.5,
    RestoreStage.RESTORING_SIGNED_APPS: 0.65,
    RestoreStage.RESTORING_IMPORTED_APPS: 0.8,
    RestoreStage.RESTORING_FRAMEWORKS: 0.83,
    RestoreStage.RESTORING_ARCHIVES: 0.85,
    RestoreStage.RESTORING_EXTRA_FILES: 0.87,
    RestoreStage.RESTORING_DATABASE: 0.88,
    RestoreStage.RESTORING_SETTINGS: 0.9,
    RestoreStage.COMPLETE: 1.0,
}

ProgressListener = Callable[[RestoreStage, float], None]


class RestoreProgress:
    """
    Single-writer observable restore progress.

    The restorer is the only writer; presentation code may read
    ``stage``/``fraction`` from any thread or subscribe to changes.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._stage = RestoreStage.IDLE
        self._fraction = 0.0
        self._active = False
        self._verifying = False
        self._listeners: list[ProgressListener] = []

    @property
    def stage(self) -> RestoreStage:
        with self._lock:
            return self._stage

    @property
    def fraction(self) -> float:
        with self._lock:
            return self._fraction

    @property
    def is_active(self) -> bool:
        with self._lock:
            return self._active

    @property
    def is_verifying(self) -> bool:
        with self._lock:
            return self._verifying

    def subscribe(self, listener: ProgressListener) -> Callable[[], None]:
        """Register a listener; returns a callable that unregisters it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def begin(self) -> None:
        with self._lock:
            self._active = True
        self.advance(RestoreStage.IDLE)

    def finish(self) -> None:
        with self._lock:
            self._active = False

    def set_verifying(self, value: bool) -> None:
        with self._lock:
            self._verifying = value

    def advance(self, stage: RestoreStage) -> None:
        """Move to ``stage`` and notify listeners with its checkpoint."""
        fraction = STAGE_CHECKPOINTS[stage]
        with self._lock:
            self._stage = stage
            self._fraction = fraction
            listeners = list(self._listeners)

        logger.debug(f"Restore stage: {stage} ({fraction:.0%})")
        for listener in listeners:
            try:
                listener(stage, fraction)
            except Exception as e:
                logger.warning(f"Progress listener failed: {e}")
