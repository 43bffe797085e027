"""Kid's Story World: a small REST API for a children's storybook catalogue."""

__version__ = "1.0.0"
