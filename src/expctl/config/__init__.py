"""Configuration: TOML sections, settings, logging."""
