from pm_api.db.base import Base
from pm_api.db.session import engine
from pm_api.models import *  # noqa: F403


def init_db() -> None:
    Base.metadata.create_all(bind=engine)


if __name__ == "__main__":
    init_db()
