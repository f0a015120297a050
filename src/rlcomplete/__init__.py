"""rlcomplete — shell tab-completion bridge backed by a long-lived readline engine."""

__version__ = "0.1.0"
