"""sprig: git introspection and cross-repository comparison engine."""
