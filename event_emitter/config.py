"""Dispatcher configuration.

Options are captured once when a dispatcher is built and never change
afterwards.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from event_emitter.errors import ConfigurationError

DEFAULT_MAX_HANDLERS_PER_KEY = 10

ENV_MAX_HANDLERS_PER_KEY = "EVENT_EMITTER_MAX_HANDLERS_PER_KEY"


@dataclass(frozen=True)
class EmitterOptions:
    """
    Configuration for dispatcher behavior.

    Args:
        max_handlers_per_key: Maximum number of handlers one event key may hold
    """

    max_handlers_per_key: int = DEFAULT_MAX_HANDLERS_PER_KEY

    def __post_init__(self):
        value = self.max_handlers_per_key
        # bool is an int subclass; True is not a meaningful limit
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigurationError(
                f"max_handlers_per_key must be an integer, got {type(value).__name__}"
            )
        if value < 1:
            raise ConfigurationError(f"max_handlers_per_key must be >= 1, got {value}")

    @classmethod
    def from_env(cls) -> EmitterOptions:
        """Load options from environment variables.

        Returns:
            EmitterOptions instance
        """
        raw = os.environ.get(ENV_MAX_HANDLERS_PER_KEY)
        if raw is None or not raw.strip():
            return cls()

        try:
            limit = int(raw.strip())
        except ValueError as e:
            raise ConfigurationError(
                f"{ENV_MAX_HANDLERS_PER_KEY} must be an integer, got {raw!r}"
            ) from e

        return cls(max_handlers_per_key=limit)
