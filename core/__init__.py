"""Backend contract, configuration and host selection."""
