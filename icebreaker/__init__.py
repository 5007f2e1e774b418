"""Icebreaker event backend: grouping, review aggregation and realtime updates."""
