"""Entity models shared by the test suite."""

from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

SCHEMA_NAME = "TaskModel"


class Task(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = ""
    done: bool = False
    priority: int = 0
    due: Optional[datetime] = None


class Tag(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(default="", unique=True)


class Note(SQLModel):
    """Plain model without a table."""
    text: str = ""


class CountingDataSource:
    """Data source that records how often it is asked for a name."""

    def __init__(self, name):
        self.name = name
        self.calls = 0

    def schema_name(self, manager):
        self.calls += 1
        return self.name
