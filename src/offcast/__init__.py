"""Offcast API: subscriber-gated creator community backend."""
