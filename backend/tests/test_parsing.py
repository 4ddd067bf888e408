from aceprep.parsing import (
    parse_essay_grading,
    parse_flashcard_pairs,
    parse_json,
    parse_key_points,
    parse_questions,
    parse_video_notes,
    response_text,
    strip_code_fences,
)

from conftest import gemini_body


def test_strip_code_fences_removes_json_fence():
    assert strip_code_fences('```json\n[1, 2]\n```') == "[1, 2]"
    assert strip_code_fences("```\n{}\n```") == "{}"


def test_parse_json_recovers_payload_inside_prose():
    text = 'Sure! Here you go:\n[{"front": "a", "back": "b"}]\nGood luck.'
    assert parse_json(text) == [{"front": "a", "back": "b"}]


def test_parse_json_returns_default_on_garbage():
    assert parse_json("not json at all", default=[]) == []
    assert parse_json("", default={}) == {}


def test_response_text_handles_missing_candidates():
    assert response_text(gemini_body("hi")) == "hi"
    assert response_text({"candidates": []}) == ""
    assert response_text(None) == ""


def test_parse_questions_normalizes_answers_and_ids():
    text = """```json
[
  {"text": "2+2?", "answers": [{"text": "4", "isCorrect": true}, {"text": "5", "isCorrect": false}], "explanation": "math"},
  {"text": "no answers"},
  {"id": "x", "text": "Capital of France?", "answers": [{"id": "p", "text": "Paris", "isCorrect": true}, {"id": "l", "text": "Lyon"}]}
]
```"""
    questions = parse_questions(text)
    assert [q.id for q in questions] == ["q1", "x"]
    assert questions[0].answers[0].id == "q1-a1"
    assert questions[0].answers[0].is_correct is True
    assert questions[0].explanation == "math"
    assert questions[1].answers[1].is_correct is False


def test_parse_questions_malformed_yields_empty_list():
    assert parse_questions("I could not do that.") == []
    assert parse_questions('{"not": "a list"}') == []


def test_parse_key_points_from_json_array():
    assert parse_key_points('```json\n["Cells divide", " DNA replicates "]\n```') == ["Cells divide", "DNA replicates"]


def test_parse_key_points_from_bulleted_text():
    text = "- Mitosis has four phases\n* Prophase comes first\n\n2. Telophase is last\n3.5 million cells"
    assert parse_key_points(text) == [
        "Mitosis has four phases",
        "Prophase comes first",
        "Telophase is last",
        "3.5 million cells",
    ]


def test_parse_flashcard_pairs_skips_incomplete_cards():
    text = '[{"front": "Q1", "back": "A1"}, {"front": "Q2"}, "junk"]'
    assert parse_flashcard_pairs(text) == [("Q1", "A1")]


def test_parse_video_notes():
    parsed = parse_video_notes('{"title": "Photosynthesis", "summary": "Plants make sugar", "keyPoints": ["light"]}')
    assert parsed == {"title": "Photosynthesis", "summary": "Plants make sugar", "key_points": ["light"]}
    assert parse_video_notes("plain summary") is None


def test_parse_essay_grading_prefers_overall_score():
    grading = parse_essay_grading(
        '{"overallScore": 8.5, "score": 3, "letterGrade": "B+", "rubricScores": {"contentAccuracy": 9, "useOfEvidence": "7"},'
        ' "suggestions": ["Cite more"], "feedback": "Solid"}'
    )
    assert grading is not None
    assert grading.score == 8.5
    assert grading.letter_grade == "B+"
    assert grading.rubric_scores == {"contentAccuracy": 9.0, "useOfEvidence": 7.0}
    assert grading.suggestions == ["Cite more"]
    assert grading.feedback == "Solid"


def test_parse_essay_grading_falls_back_to_score_and_rejects_missing():
    assert parse_essay_grading('{"score": 6, "feedback": "ok"}').score == 6.0
    assert parse_essay_grading('{"feedback": "no score"}') is None
    assert parse_essay_grading("Great essay!") is None
