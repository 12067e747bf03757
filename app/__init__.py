"""Live audience engagement backend: Q&A, polls and real-time fan-out."""
