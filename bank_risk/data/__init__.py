"""Bank records, data providers and process-wide constants."""
