"""Shared fixtures: a temporary comment store and a clean fake mail server."""

import pytest
import pytest_asyncio

from comment_notifier.services import CommentService, DatabaseService

from .support import FakeSMTP


@pytest.fixture(autouse=True)
def reset_fake_smtp():
    FakeSMTP.instances = []
    FakeSMTP.fail_with = None
    yield


@pytest_asyncio.fixture
async def db(tmp_path):
    service = DatabaseService(tmp_path / "comments.db")
    await service.initialize()
    yield service
    await service.close()


@pytest_asyncio.fixture
async def store(db):
    return CommentService(db)
