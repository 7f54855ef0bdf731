"""UI — user-facing surfaces (CLI)."""
