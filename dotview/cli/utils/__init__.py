"""Output helpers for the dv command line."""
