"""Embassy bot: WarEra identity verification and guild provisioning."""

__version__ = "0.1.0"
