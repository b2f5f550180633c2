"""Core services: parsing, workspaces, history, diffs and merges."""
