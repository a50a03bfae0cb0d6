"""Periodic snapshot polling with scoped cancellation."""

from __future__ import annotations

from gamedash.polling.coordinator import PollCycle, PollingCoordinator, Throttle

__all__ = ["PollCycle", "PollingCoordinator", "Throttle"]
