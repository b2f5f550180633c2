"""Binary content detection."""

# Git's own heuristic: a NUL byte within the first 8000 bytes means binary
BINARY_SNIFF_BYTES = 8000


def looks_binary(content: bytes) -> bool:
    """Return True if content looks binary by git's NUL-byte heuristic."""
    return b"\0" in content[:BINARY_SNIFF_BYTES]
