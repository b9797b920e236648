"""veriseal command-line interface."""
