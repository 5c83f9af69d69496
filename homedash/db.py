from sqlalchemy import event
from sqlmodel import SQLModel, create_engine, Session
from .settings import settings

_is_sqlite = settings.database_url.startswith("sqlite")

engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,
    connect_args={"check_same_thread": False} if _is_sqlite else {},
)

if _is_sqlite:
    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_conn, _record):
        # sqlite ignores REFERENCES unless asked per connection
        cur = dbapi_conn.cursor()
        cur.execute("PRAGMA foreign_keys=ON")
        cur.close()

def init_db():
    from . import models  # noqa: F401  register tables on the metadata
    SQLModel.metadata.create_all(engine)

def get_session():
    # 👇 prevent attribute expiration so simple reads after commit are safe
    return Session(engine, expire_on_commit=False)
