"""ABI definitions used by swap scenarios."""
