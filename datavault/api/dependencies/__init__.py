"""FastAPI dependencies: authentication, rate limiting and service access."""
