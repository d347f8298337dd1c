"""LC-3 devices and host I/O back-ends."""
