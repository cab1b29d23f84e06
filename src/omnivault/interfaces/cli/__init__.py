"""Command-line interface for OmniVault."""
