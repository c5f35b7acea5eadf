"""Demo database for trying the console locally."""
