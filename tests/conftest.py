"""Shared fixtures: in-memory database, sample MSPDI documents."""

import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="pm_api_uploads_"))

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from pm_api import models  # noqa: E402,F401
from pm_api.db.base import Base  # noqa: E402

SAMPLE_XML = """<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<Project xmlns="http://schemas.microsoft.com/project">
  <Name>Office Move</Name>
  <StartDate>2024-03-01T08:00:00</StartDate>
  <FinishDate>2024-03-29T17:00:00</FinishDate>
  <Tasks>
    <Task>
      <UID>1</UID>
      <ID>1</ID>
      <Name>Planning</Name>
      <OutlineLevel>1</OutlineLevel>
      <OutlineNumber>1</OutlineNumber>
      <Start>2024-03-01T08:00:00</Start>
      <Finish>2024-03-06T17:00:00</Finish>
      <Summary>1</Summary>
    </Task>
    <Task>
      <UID>2</UID>
      <ID>2</ID>
      <Name>Site survey</Name>
      <OutlineLevel>2</OutlineLevel>
      <OutlineNumber>1.1</OutlineNumber>
      <Start>2024-03-01T08:00:00</Start>
      <Finish>2024-03-04T17:00:00</Finish>
      <Duration>PT16H0M0S</Duration>
      <PercentComplete>100</PercentComplete>
      <Notes>Measure every room.</Notes>
    </Task>
    <Task>
      <UID>3</UID>
      <ID>3</ID>
      <Name>Floor plan</Name>
      <OutlineLevel>2</OutlineLevel>
      <OutlineNumber>1.2</OutlineNumber>
      <Duration>2</Duration>
      <PredecessorLink>
        <PredecessorUID>2</PredecessorUID>
        <Type>1</Type>
        <LinkLag>120</LinkLag>
        <LagFormat>7</LagFormat>
      </PredecessorLink>
    </Task>
    <Task>
      <UID>4</UID>
      <ID>4</ID>
      <Name>Move</Name>
      <OutlineLevel>1</OutlineLevel>
      <OutlineNumber>2</OutlineNumber>
      <Duration>3</Duration>
      <Priority>800</Priority>
      <PercentComplete>50</PercentComplete>
      <PredecessorLink>
        <PredecessorUID>3</PredecessorUID>
        <Type>3</Type>
        <LinkLag>2</LinkLag>
        <LagFormat>3</LagFormat>
      </PredecessorLink>
      <PredecessorLink>
        <PredecessorUID>99</PredecessorUID>
        <Type>1</Type>
      </PredecessorLink>
    </Task>
    <Task>
      <UID>5</UID>
      <ID>5</ID>
      <Name>Pack boxes</Name>
      <OutlineLevel>2</OutlineLevel>
      <OutlineNumber>2.1</OutlineNumber>
      <Priority>200</Priority>
    </Task>
  </Tasks>
  <Resources>
    <Resource>
      <UID>0</UID>
      <ID>0</ID>
    </Resource>
    <Resource>
      <UID>1</UID>
      <ID>1</ID>
      <Name>Alice</Name>
      <Type>1</Type>
      <MaxUnits>100</MaxUnits>
      <StandardRate>50</StandardRate>
      <EmailAddress>alice@example.com</EmailAddress>
    </Resource>
    <Resource>
      <UID>2</UID>
      <ID>2</ID>
      <Name>Boxes</Name>
      <Type>0</Type>
    </Resource>
    <Resource>
      <UID>3</UID>
      <ID>3</ID>
      <Name>Budget</Name>
      <Type>2</Type>
    </Resource>
  </Resources>
  <Assignments>
    <Assignment>
      <UID>1</UID>
      <TaskUID>2</TaskUID>
      <ResourceUID>1</ResourceUID>
      <Units>100</Units>
      <Work>PT16H0M0S</Work>
    </Assignment>
    <Assignment>
      <UID>2</UID>
      <TaskUID>5</TaskUID>
      <ResourceUID>2</ResourceUID>
      <Units>50</Units>
      <Work>8</Work>
    </Assignment>
    <Assignment>
      <UID>3</UID>
      <TaskUID>42</TaskUID>
      <ResourceUID>1</ResourceUID>
    </Assignment>
    <Assignment>
      <UID>4</UID>
      <TaskUID>4</TaskUID>
      <ResourceUID>77</ResourceUID>
    </Assignment>
  </Assignments>
</Project>
"""


@pytest.fixture
def sample_xml() -> str:
    return SAMPLE_XML


@pytest.fixture
def sample_xml_file(tmp_path):
    path = tmp_path / "office-move.xml"
    path.write_text(SAMPLE_XML, encoding="utf-8")
    return path


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()
