"""REST API exposing the DataVault services."""
