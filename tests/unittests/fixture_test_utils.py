"""Shared helpers for the unit tests."""

import io

from rich.console import Console
from sqlalchemy import func, select

from datafixtures.cli.console import THEME, ConsoleStyle
from datafixtures.database.database import DatabaseSessionManager

MEMORY_URL = "sqlite+aiosqlite:///:memory:"


class CapturedConsole:
    """ConsoleStyle writing plain text into a buffer."""

    def __init__(self):
        self.buffer = io.StringIO()
        self.ui = ConsoleStyle(
            Console(
                file=self.buffer,
                theme=THEME,
                width=400,
                soft_wrap=True,
                highlight=False,
            )
        )

    @property
    def output(self) -> str:
        return self.buffer.getvalue()


async def count_rows(manager: DatabaseSessionManager, model) -> int:
    async with manager.session() as session, session.begin():
        return await session.scalar(select(func.count()).select_from(model))
