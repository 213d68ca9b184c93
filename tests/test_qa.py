import pytest


@pytest.fixture
def python_tag(client, alice):
    resp = client.post("/tags", json={"name": "python", "description": "The language"}, headers=alice.headers)
    assert resp.status_code == 201
    return resp.get_json()["tag"]


def ask(client, account, tags=(), title="How to sort?", content="Sorting a list of dicts"):
    resp = client.post(
        "/questions",
        json={"title": title, "content": content, "tags": list(tags)},
        headers=account.headers,
    )
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()["question"]


# ── Tags ─────────────────────────────────────────────────────────────────────


def test_tags_crud(client, alice, admin, python_tag):
    resp = client.post("/tags", json={"name": "Python"}, headers=alice.headers)
    assert resp.status_code == 422
    assert resp.get_json()["message"] == "Tag already exists"

    question = ask(client, alice, tags=[python_tag["_id"]])
    tags = client.get("/tags").get_json()["tags"]
    assert tags[0]["name"] == "python"
    assert tags[0]["questions"] == [question["_id"]]

    resp = client.put(f"/tags/{python_tag['_id']}", json={"name": "python3", "description": "v3"}, headers=alice.headers)
    assert resp.status_code == 200
    assert resp.get_json()["tag"]["name"] == "python3"

    assert client.delete(f"/tags/{python_tag['_id']}", headers=alice.headers).status_code == 403
    assert client.delete(f"/tags/{python_tag['_id']}", headers=admin.headers).status_code == 200
    resp = client.delete(f"/tags/{python_tag['_id']}", headers=admin.headers)
    assert resp.status_code == 404
    assert resp.get_json()["message"] == f"Could not find the tag with id: {python_tag['_id']}"


def test_tag_update_errors(client, alice, python_tag):
    other = client.post("/tags", json={"name": "sql"}, headers=alice.headers).get_json()["tag"]

    resp = client.put(f"/tags/{other['_id']}", json={"name": "PYTHON"}, headers=alice.headers)
    assert resp.status_code == 422
    assert resp.get_json()["message"] == "Tag already exists"

    resp = client.put("/tags/999", json={"name": "ghost"}, headers=alice.headers)
    assert resp.status_code == 404
    assert resp.get_json()["message"] == "Could not find the tag with id: 999"


def test_tag_create_requires_auth(client):
    assert client.post("/tags", json={"name": "rust"}).status_code == 401


# ── Questions ────────────────────────────────────────────────────────────────


def test_question_create_and_view(client, alice, python_tag):
    question = ask(client, alice, tags=[python_tag["_id"]])
    assert question["votes"] == 0
    assert question["views"] == 0
    assert question["creator"]["name"] == "Alice"
    assert [t["name"] for t in question["tags"]] == ["python"]

    resp = client.get(f"/questions/{question['_id']}")
    assert resp.status_code == 200
    assert resp.get_json()["question"]["views"] == 1
    assert client.get(f"/questions/{question['_id']}").get_json()["question"]["views"] == 2


def test_question_validation(client, alice):
    resp = client.post("/questions", json={"title": "Hi", "content": "ok"}, headers=alice.headers)
    assert resp.status_code == 422

    resp = client.post("/questions", json={"title": "Valid", "content": "Valid", "tags": [99]}, headers=alice.headers)
    assert resp.status_code == 404
    assert resp.get_json()["message"] == "Could not find the tag with id: 99"


def test_question_list_and_by_tag(client, alice, python_tag):
    ask(client, alice, title="Untagged one")
    tagged = ask(client, alice, tags=[python_tag["_id"]], title="Tagged one")

    listing = client.get("/questions").get_json()
    assert listing["total"] == 2
    assert [q["title"] for q in listing["questions"]] == ["Tagged one", "Untagged one"]

    by_tag = client.get(f"/question/{python_tag['_id']}").get_json()["questions"]
    assert [q["_id"] for q in by_tag] == [tagged["_id"]]

    resp = client.post("/tags", json={"name": "empty"}, headers=alice.headers)
    empty_id = resp.get_json()["tag"]["_id"]
    resp = client.get(f"/question/{empty_id}")
    assert resp.status_code == 404
    assert resp.get_json()["message"] == f"No questions found with the tag id: {empty_id}"


def test_question_update_replaces_tags(client, alice, bob, python_tag):
    other = client.post("/tags", json={"name": "sql"}, headers=alice.headers).get_json()["tag"]
    question = ask(client, alice, tags=[python_tag["_id"]])
    payload = {"title": "New title", "content": "New content", "tags": [other["_id"]]}

    assert client.put(f"/questions/{question['_id']}", json=payload, headers=bob.headers).status_code == 403

    resp = client.put(f"/questions/{question['_id']}", json=payload, headers=alice.headers)
    assert resp.status_code == 200
    updated = resp.get_json()["question"]
    assert updated["title"] == "New title"
    assert [t["name"] for t in updated["tags"]] == ["sql"]


def test_question_delete_cascades_answers(client, alice, bob):
    question = ask(client, alice)
    answer = client.post(
        "/answers", json={"content": "Use sorted()", "questionId": question["_id"]}, headers=bob.headers
    ).get_json()["answer"]

    assert client.delete(f"/questions/{question['_id']}", headers=bob.headers).status_code == 403
    resp = client.delete(f"/questions/{question['_id']}", headers=alice.headers)
    assert resp.status_code == 200
    assert resp.get_json()["question"]["_id"] == question["_id"]

    assert client.get(f"/questions/{question['_id']}").status_code == 404
    assert client.put(f"/answers/{answer['_id']}", json={"content": "edit"}, headers=bob.headers).status_code == 404


# ── Answers ──────────────────────────────────────────────────────────────────


def test_answers_crud(client, alice, bob):
    question = ask(client, alice)

    resp = client.post("/answers", json={"content": "Use sorted()", "questionId": question["_id"]}, headers=bob.headers)
    assert resp.status_code == 201
    answer = resp.get_json()["answer"]
    assert answer["creator"] == {"_id": bob.id, "name": "Bob", "email": "bob@test.com"}

    answers = client.get(f"/answers/{question['_id']}").get_json()["answers"]
    assert [a["_id"] for a in answers] == [answer["_id"]]
    embedded = client.get(f"/questions/{question['_id']}").get_json()["question"]["answers"]
    assert embedded[0]["creator"]["email"] == "bob@test.com"

    assert client.put(f"/answers/{answer['_id']}", json={"content": "Nope"}, headers=alice.headers).status_code == 403
    resp = client.put(f"/answers/{answer['_id']}", json={"content": "Use key="}, headers=bob.headers)
    assert resp.get_json()["answer"]["content"] == "Use key="

    assert client.delete(f"/answers/{answer['_id']}", headers=alice.headers).status_code == 403
    assert client.delete(f"/answers/{answer['_id']}", headers=bob.headers).status_code == 200
    assert client.get(f"/answers/{question['_id']}").get_json()["answers"] == []


def test_answer_needs_existing_question(client, bob):
    resp = client.post("/answers", json={"content": "Orphan answer", "questionId": 404}, headers=bob.headers)
    assert resp.status_code == 404
    assert client.get("/answers/404").status_code == 404


# ── Voting ───────────────────────────────────────────────────────────────────


def test_question_voting_rules(client, alice, bob):
    question = ask(client, alice)
    url = f"/questions/vote/{question['_id']}"

    resp = client.put(url, json={"vote": "up"}, headers=bob.headers)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["message"] == "Vote recorded successfully"
    assert body["question"]["votes"] == 1
    assert body["question"]["voters"] == [{"userId": bob.id, "vote": "up"}]

    resp = client.put(url, json={"vote": "up"}, headers=bob.headers)
    assert resp.status_code == 403
    assert resp.get_json()["message"] == "Vote not changed"

    resp = client.put(url, json={"vote": "down"}, headers=bob.headers)
    assert resp.get_json()["question"]["votes"] == -1
    assert resp.get_json()["question"]["voters"] == [{"userId": bob.id, "vote": "down"}]

    resp = client.put(url, json={"vote": "down"}, headers=alice.headers)
    assert resp.get_json()["question"]["votes"] == -2


def test_answer_voting(client, alice, bob):
    question = ask(client, alice)
    answer = client.post(
        "/answers", json={"content": "Use sorted()", "questionId": question["_id"]}, headers=bob.headers
    ).get_json()["answer"]
    url = f"/answers/vote/{answer['_id']}"

    assert client.put(url, json={"vote": "down"}, headers=alice.headers).get_json()["answer"]["votes"] == -1
    assert client.put(url, json={"vote": "up"}, headers=alice.headers).get_json()["answer"]["votes"] == 1
    assert client.put(url, json={"vote": "sideways"}, headers=alice.headers).status_code == 422
    assert client.put("/answers/vote/999", json={"vote": "up"}, headers=alice.headers).status_code == 404
