"""Free-space packing engine and stack builder."""
