"""Core module: settings, logging, shared types, errors and run context."""
