"""File intake service: multi-file selection, validation and preview lifecycle."""
