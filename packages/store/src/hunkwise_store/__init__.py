"""Checkpoint persistence for resumable reviews."""
