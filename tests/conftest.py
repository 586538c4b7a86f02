import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from recipes_catalog import models
from recipes_catalog.db import make_engine


@pytest.fixture
def engine():
    # StaticPool so every connection sees the same in-memory database
    engine = make_engine("sqlite:///:memory:", poolclass=StaticPool)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    models.Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
