"""Database configuration and initialization."""
from sqlalchemy import create_engine, BigInteger, Integer
from sqlalchemy.orm import scoped_session, sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

# Create SQLAlchemy base
Base = declarative_base()

# Global session and engine
engine = None
db_session = None


def _engine_options(app, database_uri):
    """Build create_engine() keyword arguments for the configured backend."""
    options = {
        'echo': app.config.get('SQLALCHEMY_ECHO', False),
        'pool_pre_ping': True,  # Enable connection health checks
    }

    if database_uri.startswith('sqlite'):
        options['connect_args'] = {'check_same_thread': False}
        # In-memory databases live inside a single connection
        if database_uri in ('sqlite://', 'sqlite:///:memory:'):
            options['poolclass'] = StaticPool
    else:
        options['pool_size'] = 10
        options['max_overflow'] = 20

    return options


def init_db(app):
    """Initialize database connection."""
    global engine, db_session

    database_uri = app.config['SQLALCHEMY_DATABASE_URI']
    engine = create_engine(database_uri, **_engine_options(app, database_uri))

    db_session = scoped_session(
        sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
    )

    Base.query = db_session.query_property()

    # Register teardown
    @app.teardown_appcontext
    def shutdown_session(exception=None):
        """Close database session and rollback on error."""
        if exception:
            db_session.rollback()
        db_session.remove()


def create_all():
    """Create every table known to the declarative Base."""
    # Import models so they register on Base.metadata
    import fieldsales.models  # noqa: F401
    Base.metadata.create_all(bind=engine)


def drop_all():
    """Drop every table known to the declarative Base."""
    import fieldsales.models  # noqa: F401
    Base.metadata.drop_all(bind=engine)


def get_session():
    """Get database session."""
    return db_session


# BIGINT keys in PostgreSQL; SQLite only autoincrements INTEGER primary keys
IdType = BigInteger().with_variant(Integer, 'sqlite')
