"""Business logic sitting between route handlers and repositories."""
