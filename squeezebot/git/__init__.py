"""Git stages of the optimization pipeline."""
