def _create(client, name="AP Calculus BC"):
    r = client.post("/classes", json={"name": name})
    assert r.status_code == 201
    return r.json()


def test_create_list_rename_delete(client):
    cls = _create(client)
    assert cls["topics"] == []
    assert client.post("/classes", json={"name": "  "}).status_code == 400

    r = client.patch(f"/classes/{cls['id']}", json={"name": "AP Calculus AB"})
    assert r.json()["name"] == "AP Calculus AB"
    assert [c["name"] for c in client.get("/classes").json()] == ["AP Calculus AB"]

    assert client.delete(f"/classes/{cls['id']}").status_code == 204
    assert client.get("/classes").json() == []
    assert client.delete(f"/classes/{cls['id']}").status_code == 404


def test_topics(client):
    cls = _create(client)
    client.post(f"/classes/{cls['id']}/topics", json={"topic": "Derivatives"})
    r = client.post(f"/classes/{cls['id']}/topics", json={"topic": "Integrals"})
    assert r.json()["topics"] == ["Derivatives", "Integrals"]
    assert client.post(f"/classes/{cls['id']}/topics", json={"topic": "Derivatives"}).status_code == 409

    r = client.delete(f"/classes/{cls['id']}/topics/Derivatives")
    assert r.json()["topics"] == ["Integrals"]
    assert client.delete(f"/classes/{cls['id']}/topics/Derivatives").status_code == 404


def test_export_and_import_round_trip_between_users(client, set_user):
    cls = _create(client, "SAT Preparation")
    client.post(f"/classes/{cls['id']}/topics", json={"topic": "Reading Comprehension"})
    r = client.get("/classes/export")
    assert r.headers["content-disposition"] == 'attachment; filename="aceprep-classes.json"'
    exported = r.json()

    set_user("bob")
    assert client.get("/classes").json() == []
    r = client.post("/classes/import", json=exported + [{"id": "", "name": "AP Biology", "topics": []}])
    assert r.json() == {"imported": 2}
    names = sorted(c["name"] for c in client.get("/classes").json())
    assert names == ["AP Biology", "SAT Preparation"]


def test_import_with_a_blank_name_writes_nothing(client):
    r = client.post(
        "/classes/import",
        json=[{"id": "c1", "name": "AP Biology", "topics": []}, {"id": "c2", "name": "  ", "topics": []}],
    )
    assert r.status_code == 400
    assert client.get("/classes").json() == []
