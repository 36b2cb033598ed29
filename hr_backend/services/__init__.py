"""Domain services for the HR records backend."""
