"""Resolution, rendering, generation and scoring engines."""
