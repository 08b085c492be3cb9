"""voskflow -- streaming speech-to-text pipeline over the Vosk recognition engine."""

__version__ = '0.1.0'
