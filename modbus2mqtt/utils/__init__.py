from .paths import get_path, set_path, split_path

__all__ = ["get_path", "set_path", "split_path"]
