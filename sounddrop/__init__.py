"""SoundDrop: audio sample sharing API and favorites client."""

__version__ = "0.1.0"
