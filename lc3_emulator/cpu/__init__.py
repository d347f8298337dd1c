"""LC-3 CPU core: registers, decoder, ALU."""
