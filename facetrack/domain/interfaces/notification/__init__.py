from .notifier import TrackNotifier

__all__ = ["TrackNotifier"]
