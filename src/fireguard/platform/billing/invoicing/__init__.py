"""Invoice generation and lifecycle."""
