"""Output layer: turns ServiceResults into text for humans or machines."""
