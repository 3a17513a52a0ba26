"""Adapters for external tools (git, gpg, rclone, openclaw, network)."""
