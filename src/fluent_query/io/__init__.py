"""I/O layer: database executors."""
