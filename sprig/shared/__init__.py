"""Helpers shared by adapters and core services (config file I/O, content sniffing)."""
