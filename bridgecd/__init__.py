"""bridgecd — continuous delivery of services to Bridge nodes."""

__version__ = "0.1.0"
