"""TinyClaw: outbound delivery core for chat-integrated agents."""

__version__ = "0.3.0"
