"""
Tests for file endpoints.
"""

import base64
import io
import tarfile

from sqlalchemy import select

from app.models.file import File
from app.models.published_file import PublishedFile
from app.services.content_cache import FILE_CACHE

from .factories import (
    auth_headers,
    create_test_file,
    create_test_project,
    create_test_published_project,
    create_test_user,
)


def upload(project_id, path, content: bytes):
    return {
        "data": {"project_id": str(project_id), "path": path},
        "files": {"buffer": ("blob", content, "application/octet-stream")},
    }


async def test_upload_creates_then_replaces(client, db_session, session_factory, cache_backend):
    alice = await create_test_user(db_session, "alice")
    project = await create_test_project(db_session, alice)

    created = await client.post("/files", headers=auth_headers("alice"), **upload(project.id, "index.html", b"v1"))
    assert created.status_code == 201
    body = created.json()
    assert body["path"] == "index.html"
    assert body["project_id"] == project.id
    assert "buffer" not in body

    replaced = await client.post("/files", headers=auth_headers("alice"), **upload(project.id, "index.html", b"v2"))
    assert replaced.status_code == 200
    assert replaced.json() == {"id": body["id"], "path": "index.html", "project_id": project.id}
    assert f"{FILE_CACHE}:{body['id']}" in cache_backend.deleted

    async with session_factory() as s:
        files = (await s.execute(select(File).where(File.project_id == project.id))).scalars().all()
    assert [(f.id, f.buffer) for f in files] == [(body["id"], b"v2")]


async def test_upload_into_someone_elses_project(client, db_session):
    alice = await create_test_user(db_session, "alice")
    await create_test_user(db_session, "bob")
    project = await create_test_project(db_session, alice)

    resp = await client.post("/files", headers=auth_headers("bob"), **upload(project.id, "x.html", b"x"))
    assert resp.status_code == 401


async def test_upload_into_missing_project(client, db_session):
    await create_test_user(db_session, "alice")

    resp = await client.post("/files", headers=auth_headers("alice"), **upload(999, "x.html", b"x"))
    assert resp.status_code == 404


async def test_upload_without_buffer(client, db_session):
    alice = await create_test_user(db_session, "alice")
    project = await create_test_project(db_session, alice)

    resp = await client.post(
        "/files",
        headers=auth_headers("alice"),
        files={"path": (None, "index.html"), "project_id": (None, str(project.id))},
    )
    assert resp.status_code == 400


async def test_get_file_content(client, db_session, cache_backend):
    alice = await create_test_user(db_session, "alice")
    project = await create_test_project(db_session, alice)
    file = await create_test_file(db_session, project, buffer=b"\x00\x01binary")

    resp = await client.get(f"/files/{file.id}", headers=auth_headers("alice"))

    assert resp.status_code == 200
    assert resp.content == b"\x00\x01binary"
    assert resp.headers["content-type"] == "application/octet-stream"
    assert cache_backend.store[f"{FILE_CACHE}:{file.id}"] == b"\x00\x01binary"


async def test_get_file_of_another_user(client, db_session):
    alice = await create_test_user(db_session, "alice")
    await create_test_user(db_session, "bob")
    project = await create_test_project(db_session, alice)
    file = await create_test_file(db_session, project)

    resp = await client.get(f"/files/{file.id}", headers=auth_headers("bob"))
    assert resp.status_code == 401


async def test_update_file_drops_cached_content(client, db_session, cache_backend):
    alice = await create_test_user(db_session, "alice")
    project = await create_test_project(db_session, alice)
    file = await create_test_file(db_session, project, "old.html", b"old")

    first = await client.get(f"/files/{file.id}", headers=auth_headers("alice"))
    assert first.content == b"old"

    resp = await client.put(
        f"/files/{file.id}",
        headers=auth_headers("alice"),
        **upload(project.id, "new.html", b"new"),
    )
    assert resp.status_code == 200
    assert resp.json() == {"id": file.id, "path": "new.html", "project_id": project.id}

    second = await client.get(f"/files/{file.id}", headers=auth_headers("alice"))
    assert second.content == b"new"


async def test_delete_file_keeps_published_copy(client, db_session, session_factory, cache_backend):
    alice = await create_test_user(db_session, "alice")
    project = await create_test_project(db_session, alice)
    file = await create_test_file(db_session, project, "index.html", b"live")
    await create_test_published_project(db_session, project)

    resp = await client.delete(f"/files/{file.id}", headers=auth_headers("alice"))
    assert resp.status_code == 204
    assert f"{FILE_CACHE}:{file.id}" in cache_backend.deleted

    async with session_factory() as s:
        assert await s.get(File, file.id) is None
        copies = (
            await s.execute(select(PublishedFile).where(PublishedFile.published_id == project.published_id))
        ).scalars().all()
    assert [(c.path, c.file_id, c.buffer) for c in copies] == [("index.html", None, b"live")]


async def test_list_project_files(client, db_session):
    alice = await create_test_user(db_session, "alice")
    project = await create_test_project(db_session, alice)
    a = await create_test_file(db_session, project, "a.txt", b"aaa")
    b = await create_test_file(db_session, project, "b.txt", b"bbb")

    resp = await client.get(f"/projects/{project.id}/files", headers=auth_headers("alice"))

    assert resp.status_code == 200
    assert resp.json() == [
        {"id": a.id, "project_id": project.id, "path": "a.txt", "buffer": base64.b64encode(b"aaa").decode()},
        {"id": b.id, "project_id": project.id, "path": "b.txt", "buffer": base64.b64encode(b"bbb").decode()},
    ]


async def test_list_project_files_meta(client, db_session):
    alice = await create_test_user(db_session, "alice")
    project = await create_test_project(db_session, alice)
    a = await create_test_file(db_session, project, "a.txt")

    resp = await client.get(f"/projects/{project.id}/files/meta", headers=auth_headers("alice"))

    assert resp.status_code == 200
    assert resp.json() == [{"id": a.id, "project_id": project.id, "path": "a.txt"}]


async def test_list_files_of_project_without_files(client, db_session):
    alice = await create_test_user(db_session, "alice")
    project = await create_test_project(db_session, alice)

    resp = await client.get(f"/projects/{project.id}/files/meta", headers=auth_headers("alice"))
    assert resp.status_code == 404


async def test_project_files_tar(client, db_session):
    alice = await create_test_user(db_session, "alice")
    project = await create_test_project(db_session, alice)
    contents = {
        "index.html": b"<html></html>",
        "js/app.js": b"console.log('hi')" * 100,
        "empty.txt": b"",
    }
    for path, buffer in contents.items():
        await create_test_file(db_session, project, path, buffer)

    resp = await client.get(f"/projects/{project.id}/files/tar", headers=auth_headers("alice"))

    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/octet-stream"
    with tarfile.open(fileobj=io.BytesIO(resp.content)) as archive:
        members = archive.getmembers()
        extracted = {m.name: archive.extractfile(m).read() for m in members}
    assert len(members) == 3
    assert extracted == contents
