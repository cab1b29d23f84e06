"""User-facing interfaces for OmniVault."""
