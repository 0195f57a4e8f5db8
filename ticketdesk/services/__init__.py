"""Service modules - Business logic layer"""
from .ticket_service import TicketService
from .comment_service import CommentService
from .analytics_service import AnalyticsService
from .sweeper_service import SweeperService

__all__ = [
    "TicketService",
    "CommentService",
    "AnalyticsService",
    "SweeperService",
]
