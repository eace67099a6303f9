"""Core building blocks: configuration, errors, logging and the HTTP client."""
