from .application import TrailApplication

__all__ = ["TrailApplication"]
