"""Concurrency limits for the three job lanes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from .env import positive_int_env

DEFAULT_BULK_CONCURRENCY: Final[int] = 4
DEFAULT_MODERATE_CONCURRENCY: Final[int] = 2
DEFAULT_SERIAL_CONCURRENCY: Final[int] = 1

QUIESCENCE_INTERVAL_SECONDS: Final[float] = 0.5
QUIESCENCE_REQUIRED_SAMPLES: Final[int] = 3
QUIESCENCE_STATUS_EVERY_SAMPLES: Final[int] = 120


@dataclass(frozen=True, slots=True)
class QueueConfig:
    bulk: int = DEFAULT_BULK_CONCURRENCY
    moderate: int = DEFAULT_MODERATE_CONCURRENCY
    serial: int = DEFAULT_SERIAL_CONCURRENCY


def get_queue_config() -> QueueConfig:
    return QueueConfig(
        bulk=positive_int_env("WORLDTIDY_QUEUE_BULK", DEFAULT_BULK_CONCURRENCY),
        moderate=positive_int_env("WORLDTIDY_QUEUE_MODERATE", DEFAULT_MODERATE_CONCURRENCY),
        serial=positive_int_env("WORLDTIDY_QUEUE_SERIAL", DEFAULT_SERIAL_CONCURRENCY),
    )
