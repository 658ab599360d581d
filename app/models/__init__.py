"""
Task Tracker Database Models

This module exports all SQLAlchemy models for the application.
"""

from app.models.user import User, UserRole
from app.models.task import Task, TaskStatus, TaskPriority

__all__ = [
    # User models
    "User",
    "UserRole",
    # Task models
    "Task",
    "TaskStatus",
    "TaskPriority",
]
