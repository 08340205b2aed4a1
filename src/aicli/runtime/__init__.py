"""Configuration layering and the end-to-end pipeline."""
