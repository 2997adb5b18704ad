"""
chainrisk — Error taxonomy

Only InvalidRequest and InternalFault ever reach a caller. SourceFailed and
SourceUnavailable are raised inside adapters and become Failed / Unavailable
SignalResult values in SignalAdapter.fetch; alert errors never leave the
dispatcher.
"""


class ChainRiskError(Exception):
    """Base for every error raised by the engine."""


class SourceFailed(ChainRiskError):
    """A collaborator call failed: transport, timeout, status, or parse error."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"{source}: {reason}")


class MalformedUpstreamPayload(SourceFailed):
    """A collaborator answered successfully with content of the wrong shape."""


class SourceUnavailable(ChainRiskError):
    """The collaborator is not configured (missing credential or URL)."""

    def __init__(self, source: str, reason: str = "not configured"):
        self.source = source
        self.reason = reason
        super().__init__(f"{source}: {reason}")


class InvalidRequest(ChainRiskError):
    """Missing or malformed request input. Surfaced as a client error."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InternalFault(ChainRiskError):
    """Unexpected engine error. Surfaced as a generic server error."""


class ScoringInvariantError(InternalFault):
    """A produced assessment broke the score/breakdown invariant."""
