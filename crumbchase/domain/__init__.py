"""Framework-agnostic game and learning logic."""
