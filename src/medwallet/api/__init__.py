"""HTTP API for medwallet."""
