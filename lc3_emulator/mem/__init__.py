"""LC-3 memory."""
