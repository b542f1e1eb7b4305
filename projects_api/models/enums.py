"""Enumerations shared by entities, schemas and services."""

from enum import Enum


class Role(str, Enum):
    USER = "ROLE_USER"
    ADMIN = "ROLE_ADMIN"


class TaskStatus(str, Enum):
    TODO = "TODO"
    DOING = "DOING"
    DONE = "DONE"


class TaskPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"
