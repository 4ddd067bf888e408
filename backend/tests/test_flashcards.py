from datetime import datetime, timedelta

from aceprep import store
from aceprep.routers.flashcards import is_due, schedule_review
from aceprep.schemas import Flashcard


def _card(**kw) -> Flashcard:
    base = dict(id="card-1", front="Q", back="A", topic="SAT Math")
    base.update(kw)
    return Flashcard(**base)


def test_schedule_review_uses_fixed_offsets():
    now = datetime(2024, 3, 1, 12, 0, 0)
    for difficulty, days in (("easy", 7), ("medium", 3), ("hard", 1)):
        reviewed = schedule_review(_card(repetitions=2), difficulty, now)
        assert reviewed.difficulty == difficulty
        assert reviewed.last_reviewed == now
        assert reviewed.next_review == now + timedelta(days=days)
        assert reviewed.repetitions == 3


def test_is_due():
    now = datetime(2024, 3, 1)
    assert is_due(_card(), now)
    assert is_due(_card(next_review=now), now)
    assert not is_due(_card(next_review=now + timedelta(hours=1)), now)


def test_review_endpoint_schedules_next_review(client):
    card = client.post("/flashcards", json={"front": "sin(0)?", "back": "0", "topic": "SAT Math"}).json()
    before = datetime.utcnow()
    r = client.post(f"/flashcards/{card['id']}/review", json={"difficulty": "easy"})
    assert r.status_code == 200
    data = r.json()
    assert data["days_until_review"] == 7
    assert data["flashcard"]["repetitions"] == 1
    next_review = datetime.fromisoformat(data["flashcard"]["next_review"])
    assert before + timedelta(days=7) <= next_review <= datetime.utcnow() + timedelta(days=7)

    stored = client.get("/flashcards").json()[0]
    assert stored["difficulty"] == "easy"
    assert stored["last_reviewed"] is not None


def test_review_rejects_unknown_difficulty(client):
    card = client.post("/flashcards", json={"front": "Q", "back": "A"}).json()
    assert client.post(f"/flashcards/{card['id']}/review", json={"difficulty": "trivial"}).status_code == 422


def test_views_due_and_difficult(client, db):
    now = datetime.utcnow()
    store.save_flashcards(
        db,
        "alice",
        [
            _card(id="new"),
            _card(id="overdue", next_review=now - timedelta(days=1), difficulty="hard"),
            _card(id="later", next_review=now + timedelta(days=3), topic="AP Biology"),
        ],
    )
    ids = lambda resp: sorted(c["id"] for c in resp.json())
    assert ids(client.get("/flashcards")) == ["later", "new", "overdue"]
    assert ids(client.get("/flashcards", params={"view": "due"})) == ["new", "overdue"]
    assert ids(client.get("/flashcards", params={"view": "difficult"})) == ["overdue"]
    assert ids(client.get("/flashcards", params={"topic": "AP Biology"})) == ["later"]


def test_summary_counts_and_percentages(client, db):
    now = datetime.utcnow()
    store.save_flashcards(
        db,
        "alice",
        [
            _card(id="a", difficulty="easy", next_review=now + timedelta(days=7)),
            _card(id="b", difficulty="hard"),
            _card(id="c", difficulty="hard"),
            _card(id="d", difficulty="medium", topic="Other"),
        ],
    )
    summary = client.get("/flashcards/summary", params={"topic": "SAT Math"}).json()
    assert summary["total"] == 3
    assert summary["due"] == 2
    assert summary["difficulty"]["hard"] == {"count": 2, "percent": 66.7}
    assert summary["difficulty"]["medium"] == {"count": 0, "percent": 0.0}

    empty = client.get("/flashcards/summary", params={"topic": "Nothing"}).json()
    assert empty["total"] == 0
    assert empty["difficulty"]["easy"]["percent"] == 0.0


def test_manual_card_requires_both_sides(client):
    assert client.post("/flashcards", json={"front": " ", "back": "A"}).status_code == 400


def test_cards_are_partitioned_by_user(client, set_user):
    card = client.post("/flashcards", json={"front": "Q", "back": "A"}).json()
    set_user("bob")
    assert client.get("/flashcards").json() == []
    assert client.post(f"/flashcards/{card['id']}/review", json={"difficulty": "hard"}).status_code == 404
    assert client.delete(f"/flashcards/{card['id']}").status_code == 404
    set_user("alice")
    assert client.delete(f"/flashcards/{card['id']}").status_code == 204
