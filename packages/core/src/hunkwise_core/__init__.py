"""Diff decomposition, resumable batching and comment validation for large pull requests."""
