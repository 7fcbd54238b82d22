"""API-side services: tokens and account credentials."""
