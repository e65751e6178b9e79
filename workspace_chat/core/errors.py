"""Exception hierarchy for the conversation engine."""

from __future__ import annotations


class WorkspaceChatError(Exception):
    """Base class for all errors raised by workspace_chat."""


class ConfigurationError(WorkspaceChatError):
    """Startup configuration is unusable (e.g. no provider credential)."""


class ValidationError(WorkspaceChatError):
    """A user request was rejected; the state was left untouched."""


class ProviderSessionError(WorkspaceChatError):
    """The remote provider failed while creating a session or streaming.

    By the time this is raised the binding that produced it has already
    been invalidated.
    """
