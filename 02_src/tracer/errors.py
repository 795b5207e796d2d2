"""Error taxonomy for the trace correlation engine."""


class TracerError(Exception):
    """Base class for all engine errors."""


class ProducerUnavailable(TracerError):
    """The trace producer binary or its target device cannot be found."""


class MalformedBlock(TracerError):
    """A request/response block could not be parsed."""

    def __init__(self, kind: str, reason: str):
        super().__init__(f"malformed {kind} block: {reason}")
        self.kind = kind
        self.reason = reason


class UnmatchedResponse(TracerError):
    """A response block arrived for a URL with no pending request."""

    def __init__(self, url: str):
        super().__init__(f"no pending request for {url}")
        self.url = url


class TransportWriteFailure(TracerError):
    """Delivering an event to a subscriber failed."""


class MutationRejected(TracerError):
    """A filter or launch-parameter mutation was invalid."""
