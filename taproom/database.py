"""Database configuration, initialization and unit of work."""
import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, BigInteger, Integer
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import scoped_session, sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from taproom.exceptions import TaproomError, ConflictError, InternalError

logger = logging.getLogger(__name__)

# Create SQLAlchemy base
Base = declarative_base()

# SQLite only autoincrements INTEGER PRIMARY KEY
BigId = BigInteger().with_variant(Integer(), 'sqlite')

# serialization_failure, deadlock_detected, lock_not_available
LOCK_CONFLICT_SQLSTATES = {'40001', '40P01', '55P03'}

# Global session and engine
engine = None
db_session = None


def init_db(app):
    """Initialize database connection."""
    global engine, db_session

    database_uri = app.config['SQLALCHEMY_DATABASE_URI']
    echo = app.config.get('SQLALCHEMY_ECHO', False)

    if database_uri.startswith('sqlite'):
        # Single shared connection so an in-memory database survives across sessions
        engine = create_engine(
            database_uri,
            echo=echo,
            connect_args={'check_same_thread': False},
            poolclass=StaticPool
        )
    else:
        engine = create_engine(
            database_uri,
            echo=echo,
            pool_pre_ping=True,  # Enable connection health checks
            pool_size=10,
            max_overflow=20
        )

    db_session = scoped_session(
        sessionmaker(autocommit=False, autoflush=False, bind=engine)
    )

    Base.query = db_session.query_property()

    # Register teardown
    @app.teardown_appcontext
    def shutdown_session(exception=None):
        """Close database session and rollback on error."""
        if exception:
            db_session.rollback()
        db_session.remove()


def get_session():
    """Get database session."""
    return db_session


def create_all():
    """Create every table known to the models package."""
    import taproom.models  # noqa: F401  (registers the mappers)
    Base.metadata.create_all(bind=engine)


def drop_all():
    import taproom.models  # noqa: F401
    Base.metadata.drop_all(bind=engine)


def is_lock_conflict(error: DBAPIError) -> bool:
    """True when the driver error means another transaction holds the rows we need."""
    orig = getattr(error, 'orig', None)
    sqlstate = getattr(orig, 'sqlstate', None) or getattr(orig, 'pgcode', None)
    if sqlstate in LOCK_CONFLICT_SQLSTATES:
        return True
    return 'database is locked' in str(orig or error).lower()


@contextmanager
def atomic(session, action: str):
    """
    Run a block as one unit of work on ``session``.

    Commits when the block finishes. On failure the transaction is rolled back
    and a single application error reaches the caller:

    - ``TaproomError`` subclasses are re-raised untouched
    - lock timeouts, deadlocks and serialization failures become ``ConflictError``
    - anything else becomes ``InternalError`` chained to the original cause
    """
    try:
        yield session
        session.commit()
    except TaproomError:
        session.rollback()
        raise
    except DBAPIError as e:
        session.rollback()
        if is_lock_conflict(e):
            logger.warning(f"{action}: lock conflict, rolled back ({e.orig})")
            raise ConflictError(f'{action}: concurrent modification, please retry') from e
        logger.exception(f"{action}: database error, rolled back")
        raise InternalError(f'{action} failed: {e.orig}') from e
    except Exception as e:
        session.rollback()
        logger.exception(f"{action}: unexpected error, rolled back")
        raise InternalError(f'{action} failed: {e}') from e
