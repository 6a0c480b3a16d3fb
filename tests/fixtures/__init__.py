"""Shared builders for vendor envelopes and sample responses."""
