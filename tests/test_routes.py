import asyncio
import json
import httpx

from conftest import _doc, _login_response


def test_requires_session(client, backend):
    """Gated pages answer 401 locally; the backend is never called."""
    for method, path in [("GET", "/files/mine"), ("GET", "/dashboard"), ("POST", "/preview/1"), ("GET", "/admin/users")]:
        r = client.request(method, path)
        assert r.status_code == 401, (path, r.text)
    assert backend.calls == []


def test_session_roundtrip(client, backend):
    backend.on("POST", "/auth/login", httpx.Response(401))
    r = client.post("/session/login", json={"usernameOrEmail": "alice", "password": "nope"})
    assert r.status_code == 401
    assert client.get("/session").json()["authenticated"] is False


def test_login_and_logout(logged_in):
    info = logged_in.get("/session").json()
    assert info == {"authenticated": True, "is_admin": False, "username": "alice", "roles": ["USER"]}
    assert logged_in.post("/session/logout").json()["authenticated"] is False
    assert logged_in.get("/files/mine").status_code == 401


def test_register_validates_locally(client, backend):
    r = client.post("/session/register", json={
        "username": "bob", "email": "bob@example.com",
        "password": "Secret1!", "confirmPassword": "Secret2!",
    })
    assert r.status_code == 422
    assert r.json()["detail"] == "Passwords do not match"

    r = client.post("/session/register", json={
        "username": "bob", "email": "bob@example.com",
        "password": "simple", "confirmPassword": "simple",
    })
    assert r.status_code == 422
    assert "uppercase" in r.json()["detail"]
    assert backend.calls == []

    backend.on("POST", "/auth/register", httpx.Response(200, json={"message": "ok"}))
    r = client.post("/session/register", json={
        "username": "bob", "email": "bob@example.com",
        "password": "Secret1!", "confirmPassword": "Secret1!",
    })
    assert r.status_code == 201, r.text
    sent = backend.calls[-1]
    assert b"confirmPassword" not in sent.content


def test_my_files_filter_and_bearer(logged_in, backend):
    backend.on("GET", "/documents/my-files", httpx.Response(200, json=[
        _doc(1, "Budget.xlsx", description="Q3 numbers", fileType="application/vnd.ms-excel"),
        _doc(2, "holiday.png", fileType="image/png", ownerName="bob"),
    ]))
    rows = logged_in.get("/files/mine", params={"q": "q3"}).json()
    assert [r["id"] for r in rows] == ["1"]
    assert rows[0]["icon"] == "bi-file-earmark-excel"
    assert rows[0]["ownedByCurrentUser"] is True
    assert backend.calls[-1].headers["authorization"].startswith("Bearer ")

    rows = logged_in.get("/files/mine").json()
    assert len(rows) == 2
    assert rows[1]["ownedByCurrentUser"] is False


def test_admin_sees_all_documents(admin_logged_in, backend):
    backend.on("GET", "/documents/admin/all", httpx.Response(200, json=[_doc(1, "a.txt"), _doc(2, "b.txt")]))
    backend.on("GET", "/documents/admin/team", httpx.Response(200, json=[_doc(3, "c.txt", ownerName="carol")]))
    assert len(admin_logged_in.get("/files/mine").json()) == 2
    assert [r["id"] for r in admin_logged_in.get("/files/team", params={"q": "CAROL"}).json()] == ["3"]
    assert ("GET", "/documents/my-files") not in backend.paths()


def test_backend_failure_is_reported_not_raised(logged_in, backend):
    backend.on("GET", "/documents/team-files", httpx.Response(500))
    r = logged_in.get("/files/team")
    assert r.status_code == 502
    assert r.json()["detail"] == "Failed to fetch team documents"


def test_delete_needs_confirmation(logged_in, backend):
    backend.on("DELETE", "/documents/5", httpx.Response(204))
    r = logged_in.delete("/files/5")
    assert r.status_code == 409
    assert backend.calls == []

    r = logged_in.delete("/files/5", params={"confirm": "true"})
    assert r.status_code == 200, r.text
    assert backend.paths() == [("DELETE", "/documents/5")]


def test_team_delete_is_admin_only(logged_in, backend):
    r = logged_in.delete("/files/team/5", params={"confirm": "true"})
    assert r.status_code == 403
    assert backend.calls == []


def test_share_splits_users(logged_in, backend):
    backend.on("POST", "/documents/9/share", httpx.Response(200, json={"ok": True}))
    r = logged_in.post("/files/9/share", json={"team_shared": True, "shared_with": " bob, ,carol@x.io "})
    assert r.status_code == 200, r.text
    assert r.json()["sharedWithUsers"] == ["bob", "carol@x.io"]
    body = json.loads(backend.calls[-1].content)
    assert body == {"documentId": "9", "sharedWithUsers": ["bob", "carol@x.io"], "teamShared": True}


def test_upload_defaults_name_to_filename(logged_in, backend):
    backend.on("POST", "/documents/upload", httpx.Response(200, json=_doc(11, "report.pdf")))
    r = logged_in.post(
        "/files",
        files={"file": ("report.pdf", b"%PDF-1.4", "application/pdf")},
        data={"description": "monthly", "team_shared": "true"},
    )
    assert r.status_code == 201, r.text
    sent = backend.calls[-1].content
    assert b'name="name"\r\n\r\nreport.pdf' in sent
    assert b'name="teamShared"\r\n\r\ntrue' in sent


def test_download_streams_attachment(logged_in, backend):
    backend.on("GET", "/documents/4/download", httpx.Response(
        200, content=b"bytes!", headers={"content-type": "application/zip",
                                         "content-disposition": 'attachment; filename="pack.zip"'}))
    r = logged_in.get("/files/4/download")
    assert r.status_code == 200
    assert r.content == b"bytes!"
    assert "attachment" in r.headers["content-disposition"]
    assert "pack.zip" in r.headers["content-disposition"]


def test_dashboard_stats(logged_in, backend):
    backend.on("GET", "/documents/my-files", httpx.Response(200, json=[
        _doc(1, "a.txt", fileSize=1024, createdAt="2025-01-01T00:00:00"),
        _doc(2, "b.txt", fileSize=512, createdAt="2025-03-01T00:00:00"),
    ]))
    backend.on("GET", "/documents/team-files", httpx.Response(200, json=[
        _doc(3, "c.txt", createdAt="2025-02-01T00:00:00"),
    ]))
    body = logged_in.get("/dashboard").json()
    assert body["my_files_count"] == 2
    assert body["team_files_count"] == 1
    assert body["total_size"] == 1536
    assert body["total_size_display"] == "1.5 KB"
    assert [d["id"] for d in body["recent_files"]] == ["2", "3", "1"]


def test_preview_open_render_close(logged_in, backend, services):
    backend.on("GET", "/documents/8", httpx.Response(200, json=_doc(8, "people.csv", shareableLink="tok-8")))
    backend.on("GET", "/documents/share/tok-8", httpx.Response(
        200, content=b"name,age\nann,3\n", headers={"content-type": "text/plain"}))

    snap = logged_in.post("/preview/8").json()
    assert snap["state"] == "ready"
    assert snap["strategy"] == "csv"
    assert snap["rendered"]["table"]["header"] == ["name", "age"]
    url = snap["access_url"]

    # the object URL serves the fetched bytes while the preview is open
    r = logged_in.get(url)
    assert r.status_code == 200 and r.content == b"name,age\nann,3\n"
    share_calls = [p for p in backend.paths() if p[1].startswith("/documents/share/")]
    assert len(share_calls) == 1

    closed = logged_in.delete("/preview").json()
    assert closed["state"] == "idle"
    assert logged_in.get(url).status_code == 404
    assert len(services.blobs) == 0


def test_preview_without_handle_is_refused(logged_in, backend, services):
    backend.on("GET", "/documents/8", httpx.Response(200, json=_doc(8, "a.txt", shareableLink=None)))
    r = logged_in.post("/preview/8")
    assert r.status_code == 409
    assert "shareable link" in r.json()["detail"]
    assert ("GET", "/documents/share/None") not in backend.paths()
    assert services.preview.state.value == "idle"


def test_preview_failure_is_shown_in_view(logged_in, backend):
    backend.on("GET", "/documents/8", httpx.Response(200, json=_doc(8, "a.txt")))
    backend.on("GET", "/documents/share/h-8", httpx.Response(503))
    snap = logged_in.post("/preview/8").json()
    assert snap["state"] == "failed"
    assert "503" in snap["error"]


def test_shared_link_download_is_anonymous(client, backend):
    backend.on("GET", "/documents/share/abc", httpx.Response(
        200, content=b"hi", headers={"content-type": "text/plain", "content-disposition": 'inline; filename="hi.txt"'}))
    r = client.get("/shared/abc")
    assert r.status_code == 200
    assert r.content == b"hi"
    assert "authorization" not in backend.calls[-1].headers


def test_later_preview_request_wins_over_slow_lookup(logged_in, backend, app_instance, services):
    """A's document lookup answers after B is shown; A must not replace B."""
    async def scenario():
        a_asked = asyncio.Event()
        a_answer = asyncio.Event()

        async def slow_doc_a(request):
            a_asked.set()
            await a_answer.wait()
            return httpx.Response(200, json=_doc("a", "a.txt"))

        backend.on("GET", "/documents/a", slow_doc_a)
        backend.on("GET", "/documents/b", httpx.Response(200, json=_doc("b", "b.txt")))
        backend.on("GET", "/documents/share/h-a", httpx.Response(200, content=b"AAA", headers={"content-type": "text/plain"}))
        backend.on("GET", "/documents/share/h-b", httpx.Response(200, content=b"BBB", headers={"content-type": "text/plain"}))

        transport = httpx.ASGITransport(app=app_instance)
        async with httpx.AsyncClient(transport=transport, base_url="http://front") as front:
            first = asyncio.create_task(front.post("/preview/a"))
            await a_asked.wait()

            second = (await front.post("/preview/b")).json()
            assert second["state"] == "ready"
            assert second["document"]["id"] == "b"

            a_answer.set()
            await first
            return (await front.get("/preview")).json()

    snap = asyncio.run(scenario())
    assert snap["document"]["id"] == "b"
    assert snap["rendered"]["text"] == "BBB"
    assert len(services.blobs) == 1
    assert ("GET", "/documents/share/h-a") not in backend.paths()


def test_malformed_document_record_is_a_page_error(logged_in, backend):
    backend.on("GET", "/documents/my-files", httpx.Response(200, json=[{"id": 1, "fileSize": 3}]))
    r = logged_in.get("/files/mine")
    assert r.status_code == 502
    assert r.json()["detail"] == "Failed to fetch documents"

    backend.on("GET", "/documents/3", httpx.Response(200, json={"id": 3}))
    r = logged_in.get("/files/3")
    assert r.status_code == 502
    assert r.json()["detail"] == "Failed to fetch document"


def test_upload_without_record_echo_still_succeeds(logged_in, backend):
    backend.on("POST", "/documents/upload", httpx.Response(200, json={"message": "stored"}))
    r = logged_in.post("/files", files={"file": ("a.txt", b"x", "text/plain")})
    assert r.status_code == 201, r.text
    assert r.json()["document"] is None


def test_switching_account_closes_previous_preview(logged_in, backend, services):
    backend.on("GET", "/documents/8", httpx.Response(200, json=_doc(8, "a.txt")))
    backend.on("GET", "/documents/share/h-8", httpx.Response(200, content=b"hi", headers={"content-type": "text/plain"}))
    url = logged_in.post("/preview/8").json()["access_url"]

    # same user again keeps the pane
    logged_in.post("/session/login", json={"usernameOrEmail": "alice", "password": "Secret1!"})
    assert logged_in.get(url).status_code == 200

    backend.on("POST", "/auth/login", _login_response("bob", ("USER",)))
    info = logged_in.post("/session/login", json={"usernameOrEmail": "bob", "password": "Secret1!"}).json()
    assert info["username"] == "bob"
    assert logged_in.get("/preview").json()["state"] == "idle"
    assert logged_in.get(url).status_code == 404
    assert len(services.blobs) == 0
