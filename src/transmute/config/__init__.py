"""Configuration layer: settings models, TOML discovery, and logging setup."""
