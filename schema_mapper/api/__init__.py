"""HTTP API exposing mapping resolution runs."""
