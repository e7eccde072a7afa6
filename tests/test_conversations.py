from conftest import auth, create_group, login, send


def test_creator_is_only_participant(client):
    ann = login(client, "ann")
    group_id = create_group(client, ann, "friends")

    resp = client.get(f"/conversations/{group_id}", headers=auth(ann))
    assert resp.status_code == 200
    body = resp.json()
    assert body["name"] == "friends"
    assert body["isGroup"] is True
    assert body["participants"] == ["ann"]
    assert body["messages"] == []


def test_create_requires_group_and_name(client):
    ann = login(client, "ann")
    headers = auth(ann)
    assert client.post("/conversations", json={"name": "x", "isGroup": False}, headers=headers).status_code == 400
    assert client.post("/conversations", json={"name": "  ", "isGroup": True}, headers=headers).status_code == 400
    assert client.post("/conversations", json={"isGroup": True}, headers=headers).status_code == 400


def test_create_by_unknown_user_is_not_found(client):
    resp = client.post("/conversations", json={"name": "g", "isGroup": True}, headers=auth("ghost"))
    assert resp.status_code == 404


def test_detail_checks_existence_then_membership(client):
    ann = login(client, "ann")
    bob = login(client, "bob")
    group_id = create_group(client, ann)

    assert client.get("/conversations/999", headers=auth(bob)).status_code == 404
    assert client.get(f"/conversations/{group_id}", headers=auth(bob)).status_code == 403
    assert client.get("/conversations/abc", headers=auth(ann)).status_code == 400


def test_add_member_flow(client):
    ann = login(client, "ann")
    bob = login(client, "bob")
    cat = login(client, "cat")
    group_id = create_group(client, ann)

    # non-member cannot add
    resp = client.post(f"/groups/{group_id}/members", json={"userId": cat}, headers=auth(bob))
    assert resp.status_code == 403

    resp = client.post(f"/groups/{group_id}/members", json={"userId": bob}, headers=auth(ann))
    assert resp.status_code == 200
    assert resp.json() == {"status": "Added"}

    again = client.post(f"/groups/{group_id}/members", json={"userId": bob}, headers=auth(ann))
    assert again.status_code == 400
    assert "already a member" in again.json()["detail"]

    missing = client.post(f"/groups/{group_id}/members", json={"userId": "ghost"}, headers=auth(ann))
    assert missing.status_code == 404
    blank = client.post(f"/groups/{group_id}/members", json={"userId": " "}, headers=auth(ann))
    assert blank.status_code == 400

    detail = client.get(f"/conversations/{group_id}", headers=auth(bob)).json()
    assert detail["participants"] == ["ann", "bob"]


def test_group_operations_reject_direct_conversations(client):
    ann = login(client, "ann")
    bob = login(client, "bob")
    resp = client.post("/messages", json={"toUserId": bob, "text": "hi"}, headers=auth(ann))
    direct_id = resp.json()["conversationId"]

    assert client.post(f"/groups/{direct_id}/members", json={"userId": bob}, headers=auth(ann)).status_code == 400
    assert client.delete(f"/groups/{direct_id}/members", headers=auth(ann)).status_code == 400
    assert client.put(f"/groups/{direct_id}/name", json={"name": "x"}, headers=auth(ann)).status_code == 400
    assert client.post("/groups/999/members", json={"userId": bob}, headers=auth(ann)).status_code == 404


def test_leave_group(client):
    ann = login(client, "ann")
    bob = login(client, "bob")
    group_id = create_group(client, ann)
    client.post(f"/groups/{group_id}/members", json={"userId": bob}, headers=auth(ann))

    resp = client.delete(f"/groups/{group_id}/members", headers=auth(bob))
    assert resp.status_code == 200
    assert resp.json() == {"status": "Left"}

    # a second leave finds no membership
    assert client.delete(f"/groups/{group_id}/members", headers=auth(bob)).status_code == 404
    assert client.get(f"/conversations/{group_id}", headers=auth(bob)).status_code == 403
    assert client.delete("/groups/999/members", headers=auth(bob)).status_code == 404


def test_rename_group(client):
    ann = login(client, "ann")
    bob = login(client, "bob")
    group_id = create_group(client, ann, "old")

    resp = client.put(f"/groups/{group_id}/name", json={"name": " new name "}, headers=auth(ann))
    assert resp.status_code == 200
    assert resp.json() == {"name": "new name"}
    assert client.get(f"/conversations/{group_id}", headers=auth(ann)).json()["name"] == "new name"

    assert client.put(f"/groups/{group_id}/name", json={"name": "x"}, headers=auth(bob)).status_code == 403
    assert client.put(f"/groups/{group_id}/name", json={"name": "  "}, headers=auth(ann)).status_code == 400
    assert client.put("/groups/999/name", json={"name": "x"}, headers=auth(ann)).status_code == 404


def test_conversation_list_for_direct_and_group(client):
    ann = login(client, "ann")
    bob = login(client, "bob")
    group_id = create_group(client, ann, "team")
    client.post(f"/groups/{group_id}/members", json={"userId": bob}, headers=auth(ann))
    send(client, ann, group_id, "group hello")

    resp = client.post("/messages", json={"toUserId": bob, "text": "hello"}, headers=auth(ann))
    direct_id = resp.json()["conversationId"]

    items = client.get("/me/conversations", headers=auth(bob)).json()
    assert [i["id"] for i in items] == [direct_id, group_id]

    direct, group = items
    assert direct["name"] == "ann"
    assert direct["isGroup"] is False
    assert direct["lastMessageText"] == "hello"
    assert direct["lastMessageAt"] is not None
    assert group["name"] == "team"
    assert group["lastMessageText"] == "group hello"
    assert group["photoUrl"] is None

    # new activity moves the group back to the top
    send(client, bob, group_id, "later")
    items = client.get("/me/conversations", headers=auth(bob)).json()
    assert items[0]["id"] == group_id
    assert items[0]["lastMessageText"] == "later"


def test_empty_group_is_listed_without_last_message(client):
    ann = login(client, "ann")
    group_id = create_group(client, ann, "quiet")

    items = client.get("/me/conversations", headers=auth(ann)).json()
    assert items == [
        {
            "id": group_id,
            "name": "quiet",
            "isGroup": True,
            "lastMessageText": None,
            "lastMessageAt": None,
            "photoUrl": None,
        }
    ]


def test_out_of_range_conversation_ids_are_bad_requests(client):
    ann = login(client, "ann")
    huge = 10**20

    assert client.get(f"/conversations/{huge}", headers=auth(ann)).status_code == 400
    assert client.get("/conversations/0", headers=auth(ann)).status_code == 400
    assert client.post(f"/conversations/{huge}/messages", json={"text": "x"}, headers=auth(ann)).status_code == 400
    assert client.post(f"/groups/{huge}/members", json={"userId": ann}, headers=auth(ann)).status_code == 400
    assert client.delete(f"/groups/{huge}/members", headers=auth(ann)).status_code == 400
    assert client.put(f"/groups/{huge}/name", json={"name": "x"}, headers=auth(ann)).status_code == 400
