"""Infrastructure: persistence, messaging and service adapters."""
