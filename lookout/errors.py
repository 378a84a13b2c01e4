"""Errors raised inside the agent core.

None of these ever reach the host page: the agent catches them at its public
surface and degrades to doing less. They exist so internal seams can fail
loudly and be logged with a precise reason.
"""

from __future__ import annotations


class LookoutError(Exception):
    """Base class for agent errors."""


class AgentConfigError(LookoutError, ValueError):
    """Raised when an agent configuration cannot be used."""

    @classmethod
    def missing_endpoint(cls) -> AgentConfigError:
        """Return an error when no ingestion endpoint is configured."""
        return cls("endpoint is required")

    @classmethod
    def missing_site_id(cls) -> AgentConfigError:
        """Return an error when no site identifier is configured."""
        return cls("site_id is required")

    @classmethod
    def not_positive(cls, field: str, value: float) -> AgentConfigError:
        """Return an error for a numeric setting that must be positive."""
        return cls(f"{field} must be positive, got: {value}")

    @classmethod
    def invalid_endpoint(cls, endpoint: str) -> AgentConfigError:
        """Return an error for an endpoint that is not an absolute HTTP URL."""
        return cls(f"endpoint must be an absolute http(s) URL, got: {endpoint!r}")


class SchedulerUnavailableError(LookoutError, RuntimeError):
    """Raised when the agent is initialised without an event loop to run on."""

    @classmethod
    def no_running_loop(cls) -> SchedulerUnavailableError:
        """Return an error when no scheduler was given and no loop is running."""
        return cls("no scheduler supplied and no running asyncio loop")
