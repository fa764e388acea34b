"""Client module - Object storage, encryption boundary, transfer runs and CLI."""
