"""ifacewatch: run a command when the active network interface changes."""

__version__ = "0.1.0"
