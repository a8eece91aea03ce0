"""Activity log sinks used by the alert engine."""

from src.alerting.domain.protocols import LogSink
from src.api.infrastructure.database import Database
from src.api.infrastructure.repositories import LogRepository


class DatabaseLogSink(LogSink):
    """Appends entries to the `logs` table."""

    def __init__(self, database: Database):
        self.database = database

    async def append(self, message: str, source: str, timestamp_ms: int) -> None:
        async with self.database.get_async_session() as session:
            await LogRepository(session).create(message, source, timestamp_ms)


class InMemoryLogSink(LogSink):
    """Keeps log entries in a list, for tests."""

    def __init__(self):
        self.entries: list[tuple[str, str, int]] = []

    async def append(self, message: str, source: str, timestamp_ms: int) -> None:
        self.entries.append((message, source, timestamp_ms))

    def __len__(self):
        return len(self.entries)
