"""CPU core: registers, decoder, opcode handlers, trap routines."""
