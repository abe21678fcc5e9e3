from .outline_controller import OutlineController  # noqa: F401

__all__ = ["OutlineController"]
