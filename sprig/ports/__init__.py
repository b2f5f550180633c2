"""Port interfaces that core services depend on."""
