from __future__ import annotations

from typing import List, Optional


class OnboardError(Exception):
    """Base class for every failure the onboard agent reports to its callers."""


class ConfigError(OnboardError):
    pass


class TransportError(OnboardError):
    """Network failure, non-2xx response or a payload that does not decode."""

    def __init__(self, message: str, url: str = "", status: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status = status


class ManifestError(OnboardError):
    pass


class InstallError(OnboardError):
    def __init__(self, message: str, diagnostics: Optional[List] = None):
        super().__init__(message)
        self.diagnostics = list(diagnostics or [])


class LaunchError(OnboardError):
    pass


class ChannelError(OnboardError):
    pass


class CollaboratorError(OnboardError):
    pass
