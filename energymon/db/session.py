"""
Async database engine lifecycle and session factory.

Uses SQLAlchemy 2.x async engine with asyncpg driver for PostgreSQL. The
Database object owns the connection pool: the application lifespan opens it
at startup, stores it on app.state, and closes it at shutdown. Handlers get
sessions through the get_db dependency rather than a module-level engine.

CHANGELOG:
- 2026-10-15: Initial creation

TODO:
- None
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)


class Database:
    """Owner of the async engine and its session factory.

    Attributes:
        url: SQLAlchemy database URL.
        engine: The async engine, None until open() is called.
        session_factory: Factory for AsyncSession instances, None until open().
    """

    def __init__(self, url: str, echo: bool = False) -> None:
        self.url = url
        self.echo = echo
        self.engine: AsyncEngine | None = None
        self.session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def is_open(self) -> bool:
        return self.engine is not None

    def open(self) -> None:
        """Create the engine and session factory.

        Safe to call multiple times; subsequent calls are no-ops. No
        connection is made until the first query.
        """
        if self.engine is None:
            self.engine = create_async_engine(self.url, echo=self.echo, pool_pre_ping=True)
            self.session_factory = async_sessionmaker(
                self.engine, class_=AsyncSession, expire_on_commit=False
            )

    async def close(self) -> None:
        """Dispose of the connection pool."""
        if self.engine is not None:
            await self.engine.dispose()
        self.engine = None
        self.session_factory = None

    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Yield an async session, closed when the caller is done.

        Yields:
            AsyncSession: An async SQLAlchemy session.

        Raises:
            RuntimeError: If the database has not been opened.
        """
        if self.session_factory is None:
            raise RuntimeError("Database is not open")
        async with self.session_factory() as session:
            yield session
