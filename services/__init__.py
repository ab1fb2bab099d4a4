"""Background services for NetNinja (live dashboard polling)."""
