"""Core: settings and process lifecycle wiring."""
