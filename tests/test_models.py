"""Tests for the Pydantic models."""

from econ_shorts.models import (
    Idea,
    Scene,
    Script,
    ScriptSection,
    ScriptType,
    Storyboard,
)


def test_models_instantiation() -> None:
    idea = Idea(id="idea-0-1", title="월급 300만원의 함정", premise="패턴 1")
    assert idea.title == "월급 300만원의 함정"

    section = ScriptSection(id=1, title="오프닝 훅", content="사실 말이야...")
    script = Script(title="Test", sections=[section])
    assert len(script.sections) == 1
    assert script.sections[0].content == "사실 말이야..."


def test_script_text_and_length() -> None:
    script = Script(
        title="Test",
        sections=[
            ScriptSection(id=1, title="A", content="가나다"),
            ScriptSection(id=2, title="B", content="라마"),
        ],
    )
    assert script.text == "가나다\n\n라마"
    assert script.length == 5


def test_scene_accepts_model_field_names() -> None:
    scene = Scene.model_validate(
        {
            "id": 1,
            "description": "주인공 등장",
            "imagePrompt": "chibi walking",
            "videoPrompt": "slow zoom",
        },
    )
    assert scene.image_prompt == "chibi walking"
    assert scene.video_prompt == "slow zoom"
    assert scene.image_path is None

    # Round-trips through the python field names used on disk
    again = Scene.model_validate_json(scene.model_dump_json())
    assert again == scene


def test_storyboard_sorts_scenes() -> None:
    board = Storyboard(
        title="Test",
        scenes=[
            Scene(id=2, description="b", image_prompt="b", video_prompt="b"),
            Scene(id=1, description="a", image_prompt="a", video_prompt="a"),
        ],
    )
    assert [s.id for s in board.scenes] == [1, 2]


def test_script_type_scene_range() -> None:
    assert ScriptType("shorts") is ScriptType.SHORTS
    assert ScriptType.SHORTS.scene_range == "10~12개"
    assert ScriptType.LONGFORM.scene_range == "35~50개"
