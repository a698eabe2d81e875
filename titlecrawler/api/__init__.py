"""
HTTP surface: application factory, handlers and process supervision.
"""

from .app import create_app
from .handlers import CrawlHandler
from .supervisor import HTTPListener, ShutdownSupervisor, SupervisorState

__all__ = ['create_app', 'CrawlHandler', 'HTTPListener', 'ShutdownSupervisor', 'SupervisorState']
