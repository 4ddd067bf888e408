import pytest

from aceprep.prompts import TASK_TYPES, UnknownTaskType, build_prompt


def test_topic_questions_defaults_to_five():
    prompt = build_prompt("topic-questions", topic="AP Biology")
    assert prompt.startswith("Generate 5 multiple choice questions")
    assert '"AP Biology"' in prompt
    assert '"isCorrect"' in prompt


def test_questions_prompt_embeds_notes_and_count():
    prompt = build_prompt("questions", content="Mitochondria make ATP", count=3)
    assert "Generate 3 multiple choice questions" in prompt
    assert prompt.endswith("Notes: Mitochondria make ATP")


def test_essay_prompt_carries_prompt_and_content():
    prompt = build_prompt("essay-grading", prompt="Discuss X", essay_content="X is...")
    assert 'Essay Prompt: "Discuss X"' in prompt
    assert 'Essay Content: "X is..."' in prompt
    assert "overallScore" in prompt


@pytest.mark.parametrize("task_type", TASK_TYPES)
def test_every_task_type_renders(task_type):
    assert build_prompt(task_type, content="c", topic="t", transcript="tr", prompt="p", essay_content="e")


def test_unknown_task_type_raises():
    with pytest.raises(UnknownTaskType):
        build_prompt("poem")
