from .mixer import AudioMixer, StemSource

__all__ = ["AudioMixer", "StemSource"]
