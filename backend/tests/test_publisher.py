"""
Tests for the publishing workflow.
"""

from datetime import datetime

import pytest
from sqlalchemy import select

from app.models.file import File
from app.models.published_file import PublishedFile
from app.models.published_project import PublishedProject
from app.services.content_cache import PUBLISHED_FILE_CACHE
from app.services.publisher import Publisher, publisher
from app.utils.exceptions import NotFoundError

from .factories import create_test_file, create_test_project, create_test_user


async def published_files_of(session_factory, published_id):
    async with session_factory() as s:
        result = await s.execute(
            select(PublishedFile).where(PublishedFile.published_id == published_id).order_by(PublishedFile.id)
        )
        return result.scalars().all()


async def test_publish_copies_project_and_files(db_session, session_factory):
    alice = await create_test_user(db_session, "alice")
    project = await create_test_project(db_session, alice, title="Portfolio")
    index = await create_test_file(db_session, project, "index.html", b"<h1>v1</h1>")
    style = await create_test_file(db_session, project, "style.css", b"body {}")

    published = await publisher.publish(db_session, project)
    await db_session.commit()

    assert project.published_id == published.id
    assert published.title == "Portfolio"
    assert published.tags == project.tags
    assert published.publish_url == f"http://publish.test/alice/{published.id}"

    copies = await published_files_of(session_factory, published.id)
    assert [(c.path, c.buffer, c.file_id) for c in copies] == [
        ("index.html", b"<h1>v1</h1>", index.id),
        ("style.css", b"body {}", style.id),
    ]


async def test_republish_overwrites_snapshot(db_session, session_factory, cache_registry, cache_backend):
    alice = await create_test_user(db_session, "alice")
    project = await create_test_project(db_session, alice)
    index = await create_test_file(db_session, project, "index.html", b"v1")

    first = await publisher.publish(db_session, project, cache_registry)
    await db_session.commit()
    old_copy_ids = [c.id for c in await published_files_of(session_factory, first.id)]

    index.buffer = b"v2"
    project.title = "Renamed"
    await db_session.commit()

    second = await publisher.publish(db_session, project, cache_registry)
    await db_session.commit()

    assert second.id == first.id
    assert second.title == "Renamed"
    copies = await published_files_of(session_factory, second.id)
    assert [c.buffer for c in copies] == [b"v2"]
    assert all(f"{PUBLISHED_FILE_CACHE}:{i}" in cache_backend.deleted for i in old_copy_ids)


async def test_unpublish_removes_snapshot(db_session, session_factory, cache_registry):
    alice = await create_test_user(db_session, "alice")
    project = await create_test_project(db_session, alice)
    await create_test_file(db_session, project)

    published = await publisher.publish(db_session, project, cache_registry)
    await db_session.commit()
    published_id = published.id

    await publisher.unpublish(db_session, project, cache_registry)
    await db_session.commit()

    assert project.published_id is None
    assert await published_files_of(session_factory, published_id) == []
    async with session_factory() as s:
        assert await s.get(PublishedProject, published_id) is None


async def test_unpublish_requires_published_project(db_session, session_factory):
    alice = await create_test_user(db_session, "alice")
    project = await create_test_project(db_session, alice)

    with pytest.raises(NotFoundError):
        await publisher.unpublish(db_session, project)

    assert project.published_id is None
    async with session_factory() as s:
        assert (await s.execute(select(PublishedProject))).scalars().all() == []
        assert (await s.execute(select(PublishedFile))).scalars().all() == []


async def test_remix_copies_snapshot_for_new_owner(db_session, session_factory):
    alice = await create_test_user(db_session, "alice")
    bob = await create_test_user(db_session, "bob")
    project = await create_test_project(db_session, alice, title="Game", tags="js")
    await create_test_file(db_session, project, "game.js", b"play()")

    published = await publisher.publish(db_session, project)
    await db_session.commit()

    now = datetime(2024, 6, 1, 9, 30)
    remix = await publisher.remix(db_session, published, bob, now=now)
    await db_session.commit()

    assert remix.user_id == bob.id
    assert remix.title == "Game (remix)"
    assert remix.tags == "js"
    assert remix.published_id is None
    assert remix.date_created == now
    assert remix.date_updated == now

    async with session_factory() as s:
        files = (await s.execute(select(File).where(File.project_id == remix.id))).scalars().all()
        snapshot = await s.get(PublishedProject, published.id)
    snapshot_files = await published_files_of(session_factory, published.id)
    assert [(f.path, f.buffer) for f in files] == [("game.js", b"play()")]
    assert snapshot.title == "Game"
    assert [(p.path, p.buffer) for p in snapshot_files] == [("game.js", b"play()")]


def test_publish_url_uses_configured_base():
    class Owner:
        name = "alice"

    class Snapshot:
        id = 5

    assert Publisher("http://example.com/p/").publish_url_for(Owner(), Snapshot()) == "http://example.com/p/alice/5"
