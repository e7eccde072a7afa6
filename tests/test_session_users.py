from conftest import auth, login


def test_health_and_liveness(client):
    assert client.get("/").status_code == 200
    resp = client.get("/liveness")
    assert resp.status_code == 200
    assert resp.json() == {"status": "alive"}


def test_login_creates_then_reuses_user(client):
    first = client.post("/session", json={"name": "ann"})
    assert first.status_code == 201
    body = first.json()
    assert body["identifier"]
    assert body["token"] == body["identifier"]

    again = client.post("/session", json={"name": "  ann  "})
    assert again.status_code == 201
    assert again.json()["identifier"] == body["identifier"]


def test_login_rejects_bad_names(client):
    assert client.post("/session", json={"name": "ab"}).status_code == 400
    assert client.post("/session", json={"name": "x" * 17}).status_code == 400
    assert client.post("/session", json={}).status_code == 400
    assert client.post("/session", content=b"not json").status_code == 400


def test_requests_without_token_are_unauthorized(client):
    assert client.get("/me/conversations").status_code == 401
    assert client.get("/users", headers={"Authorization": "Bearer "}).status_code == 401


def test_raw_authorization_header_is_accepted(client):
    ann = login(client, "ann")
    resp = client.get("/me/conversations", headers={"Authorization": ann})
    assert resp.status_code == 200
    assert resp.json() == []


def test_get_user_and_search(client):
    ann = login(client, "ann")
    login(client, "anna")
    login(client, "bob")

    resp = client.get(f"/user/{ann}", headers=auth(ann))
    assert resp.status_code == 200
    assert resp.json() == {"id": ann, "name": "ann", "photoUrl": None}

    assert client.get("/user/nobody", headers=auth(ann)).status_code == 404

    names = [u["name"] for u in client.get("/users", params={"q": "an"}, headers=auth(ann)).json()]
    assert names == ["ann", "anna"]
    everyone = [u["name"] for u in client.get("/users", headers=auth(ann)).json()]
    assert everyone == ["ann", "anna", "bob"]


def test_rename_user(client):
    ann = login(client, "ann")
    login(client, "bob")

    resp = client.put("/me/username", json={"name": " annie "}, headers=auth(ann))
    assert resp.status_code == 200
    assert resp.json() == {"name": "annie"}
    assert client.get(f"/user/{ann}", headers=auth(ann)).json()["name"] == "annie"

    # own current name is fine, someone else's is not
    assert client.put("/me/username", json={"name": "annie"}, headers=auth(ann)).status_code == 200
    taken = client.put("/me/username", json={"name": "bob"}, headers=auth(ann))
    assert taken.status_code == 400
    assert "taken" in taken.json()["detail"]

    assert client.put("/me/username", json={"name": "no"}, headers=auth(ann)).status_code == 400


def test_rename_unknown_user_is_not_found(client):
    resp = client.put("/me/username", json={"name": "ghost"}, headers=auth("no-such-user"))
    assert resp.status_code == 404


def test_search_treats_wildcards_literally(client):
    ann = login(client, "ann")
    login(client, "bob")
    login(client, "a_b%c")

    def search(q):
        resp = client.get("/users", params={"q": q}, headers=auth(ann))
        return [u["name"] for u in resp.json()]

    assert search("_") == []
    assert search("%") == []
    assert search("a_") == ["a_b%c"]
    assert search("a_b%") == ["a_b%c"]
