from .client import DEFAULT_NOTES_URL, NotesClient, NotesError, read_line_range

__all__ = ["DEFAULT_NOTES_URL", "NotesClient", "NotesError", "read_line_range"]
