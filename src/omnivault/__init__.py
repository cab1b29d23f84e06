"""OmniVault - a personal productivity vault with per-user local persistence."""

__version__ = "1.0.0"
