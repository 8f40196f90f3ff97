"""Configuration, logging, database and security primitives."""
