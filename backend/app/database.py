from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from .config import get_settings

settings = get_settings()

SQLITE_BUSY_TIMEOUT_SECONDS = 30


def build_engine(database_url: str, echo: bool = False):
    """Create an async engine with driver-specific connection arguments."""
    # Supabase/PostgreSQL with PgBouncer needs statement_cache_size=0
    # SQLite doesn't support these parameters
    if "postgresql" in database_url:
        return create_async_engine(
            database_url,
            echo=echo,
            connect_args={
                "statement_cache_size": 0,
                "prepared_statement_cache_size": 0,
            },
            pool_pre_ping=True,  # Verify connections before use
            pool_recycle=300,    # Recycle connections every 5 minutes
            pool_size=20,
            max_overflow=30,
        )

    sqlite_engine = create_async_engine(
        database_url,
        echo=echo,
        connect_args={"timeout": SQLITE_BUSY_TIMEOUT_SECONDS},
    )

    @event.listens_for(sqlite_engine.sync_engine, "connect")
    def _configure_sqlite(dbapi_connection, connection_record):
        # SQLite only enforces ON DELETE CASCADE with foreign keys switched on
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
        # Stop the driver from issuing its own BEGIN; transactions start in _begin_immediate
        dbapi_connection.isolation_level = None

    @event.listens_for(sqlite_engine.sync_engine, "begin")
    def _begin_immediate(conn):
        # Write lock taken up front; other writers wait up to the busy timeout
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return sqlite_engine


engine = build_engine(settings.database_url, echo=settings.debug)
async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

Base = declarative_base()


async def get_db():
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db(bind=None):
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
