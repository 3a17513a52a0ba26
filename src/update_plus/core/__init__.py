"""Core services for backup, restore and update."""
