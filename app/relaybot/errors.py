"""Exception types raised along the relay pipeline."""

from __future__ import annotations


class RelayError(Exception):
    """Base class for relaybot errors."""


class MissingInputError(RelayError):
    """The user left out something the request needs.

    *guidance* is shown to the user verbatim; this is an expected outcome,
    not a failure.
    """

    def __init__(self, guidance: str) -> None:
        super().__init__(guidance)
        self.guidance = guidance


class GenerationError(RelayError):
    """The generative backend answered, but not with anything usable."""


class NoImageProducedError(GenerationError):
    """An image request completed without returning image data."""
