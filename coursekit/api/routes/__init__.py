from . import courses, pages

__all__ = ["courses", "pages"]
