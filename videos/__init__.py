"""Video generation module."""
