"""Raw JSON fragment splitting and writing."""

from .raw import peek_kind, split_array, split_object, to_text, write


__all__ = ["peek_kind", "split_array", "split_object", "to_text", "write"]
