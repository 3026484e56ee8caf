"""Generation pipeline, compensation and queue."""
