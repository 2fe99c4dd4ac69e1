from .face_recognizer import CloudFaceRecognizer

__all__ = ["CloudFaceRecognizer"]
