"""Audio constants shared across layers."""

SAMPLE_RATE = 16000
CHANNELS = 1
SAMPLE_WIDTH = 2  # bytes per sample, 16-bit linear PCM

WAVE_FORMAT_PCM = 0x0001
WAVE_FORMAT_IEEE_FLOAT = 0x0003
WAVE_FORMAT_EXTENSIBLE = 0xFFFE

DEFAULT_CHUNK_SIZE = 4096  # bytes per file read
