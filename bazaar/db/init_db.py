from bazaar.db.base import Base
# Model modules register their tables on Base.metadata
from bazaar.db.models import user_model, market_model, session_model  # noqa: F401


def init_db(engine):
    Base.metadata.create_all(bind=engine)
