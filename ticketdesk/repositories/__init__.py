"""Repository modules - Data access layer"""
from .mongo_client import get_database, get_collection
from .ticket_repo import TicketRepository
from .comment_repo import CommentRepository
from .history_repo import HistoryRepository
from .directory_repo import DirectoryRepository

__all__ = [
    "get_database",
    "get_collection",
    "TicketRepository",
    "CommentRepository",
    "HistoryRepository",
    "DirectoryRepository",
]
