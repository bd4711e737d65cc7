"""StoryClip: clip selection, scene detection and subtitle binding for video stories."""

__version__ = "0.1.0"
