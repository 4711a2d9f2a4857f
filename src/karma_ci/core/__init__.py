"""Core building blocks: failure signatures, configuration, logging, errors."""
