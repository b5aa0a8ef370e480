from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from pm_api.core.config import settings

engine = create_engine(settings.database_url, echo=settings.echo_sql, pool_pre_ping=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False)
