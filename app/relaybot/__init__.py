"""relaybot -- Discord bot relaying mentions to hosted generative models."""

__version__ = "1.2.0"
