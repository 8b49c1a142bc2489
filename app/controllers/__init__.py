"""FastAPI routers acting as controllers in the MVC architecture."""

from . import analysis, call_scripts, call_stages, transcripts

__all__ = ["analysis", "call_scripts", "call_stages", "transcripts"]
