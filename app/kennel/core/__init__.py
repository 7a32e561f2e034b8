"""Core business logic for kennel."""
