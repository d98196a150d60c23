"""YAML configuration (defaults in config.yaml.example)."""
