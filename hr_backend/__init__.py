"""HR records backend: branches, employees and their documents."""
