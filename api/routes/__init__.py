"""api/routes/ -- One router module per resource, mounted by api/main.py."""
