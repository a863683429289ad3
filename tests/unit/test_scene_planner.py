"""Tests for Scene Planner service."""

import json
from unittest.mock import MagicMock

import pytest

from shorts_factory.services.scene_planner import ScenePlanner, scene_count, strip_code_fences


def chat_reply(content):
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    return response


def scenes_json(count):
    return json.dumps(
        [
            {"order": i, "prompt": f"scene {i}", "timestamp": f"0:{(i - 1) * 5:02d}-0:{i * 5:02d}"}
            for i in range(1, count + 1)
        ]
    )


@pytest.fixture
def openai_client():
    client = MagicMock()
    client.chat.completions.create.return_value = chat_reply(scenes_json(6))
    return client


@pytest.mark.parametrize(
    "duration, expected",
    [(1.0, 3), (10.0, 3), (15.0, 3), (15.01, 4), (28.4, 6), (30.0, 6), (61.0, 13)],
)
def test_scene_count_is_one_per_five_seconds_at_least_three(duration, expected):
    assert scene_count(duration) == expected


@pytest.mark.parametrize("duration", [0, -4.0, None, float("nan")])
def test_scene_count_falls_back_to_minimum(duration):
    assert scene_count(duration) == 3


@pytest.mark.parametrize(
    "reply",
    [
        '[{"prompt": "a"}]',
        '```json\n[{"prompt": "a"}]\n```',
        '```\n[{"prompt": "a"}]\n```',
        '  ```JSON[{"prompt": "a"}]```  ',
    ],
)
def test_strip_code_fences(reply):
    assert json.loads(strip_code_fences(reply)) == [{"prompt": "a"}]


def test_requires_api_key_without_client(settings, logger):
    with pytest.raises(ValueError, match="API key"):
        ScenePlanner(settings, logger)


def test_plan_scenes_asks_for_exact_count(settings, logger, openai_client):
    """Test 28.4s of narration asks for six scenes and returns them in order."""
    planner = ScenePlanner(settings, logger, client=openai_client)

    scenes = planner.plan_scenes("Once upon a time...", 28.4, style="watercolor")

    kwargs = openai_client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == settings.llm_model
    assert kwargs["temperature"] == settings.llm_temperature
    system, user = kwargs["messages"]
    assert "exactly 6" in system["content"]
    assert "watercolor" in system["content"]
    assert user["content"].endswith("Once upon a time...")
    assert [scene.order for scene in scenes] == [1, 2, 3, 4, 5, 6]
    assert scenes[0].prompt == "scene 1"
    assert scenes[1].timestamp == "0:05-0:10"


def test_fenced_reply_is_parsed(settings, logger, openai_client):
    openai_client.chat.completions.create.return_value = chat_reply(f"```json\n{scenes_json(3)}\n```")

    scenes = ScenePlanner(settings, logger, client=openai_client).plan_scenes("Short story.", 9.0)

    assert [scene.prompt for scene in scenes] == ["scene 1", "scene 2", "scene 3"]


def test_scenes_sorted_by_order(settings, logger, openai_client):
    reply = [{"order": 3, "prompt": "c"}, {"order": 1, "prompt": "a"}, {"order": 2, "prompt": "b"}]
    openai_client.chat.completions.create.return_value = chat_reply(json.dumps(reply))

    scenes = ScenePlanner(settings, logger, client=openai_client).plan_scenes("Story.", 12.0)

    assert [scene.prompt for scene in scenes] == ["a", "b", "c"]


def test_object_wrapped_string_prompts(settings, logger, openai_client):
    openai_client.chat.completions.create.return_value = chat_reply(json.dumps({"prompts": ["a", "b", "c"]}))

    scenes = ScenePlanner(settings, logger, client=openai_client).plan_scenes("Story.", 5.0)

    assert [(scene.order, scene.prompt) for scene in scenes] == [(1, "a"), (2, "b"), (3, "c")]


def test_extra_scenes_are_trimmed(settings, logger, openai_client):
    openai_client.chat.completions.create.return_value = chat_reply(scenes_json(5))

    scenes = ScenePlanner(settings, logger, client=openai_client).plan_scenes("Story.", 10.0)

    assert len(scenes) == 3


def test_too_few_scenes_raises(settings, logger, openai_client):
    openai_client.chat.completions.create.return_value = chat_reply(scenes_json(2))

    with pytest.raises(ValueError, match="Expected 3 scene prompts"):
        ScenePlanner(settings, logger, client=openai_client).plan_scenes("Story.", 10.0)


def test_non_json_reply_raises(settings, logger, openai_client):
    openai_client.chat.completions.create.return_value = chat_reply("Sure! Here are your prompts.")

    with pytest.raises(ValueError, match="Failed to parse"):
        ScenePlanner(settings, logger, client=openai_client).plan_scenes("Story.", 10.0)


def test_empty_script_rejected(settings, logger, openai_client):
    with pytest.raises(ValueError, match="empty"):
        ScenePlanner(settings, logger, client=openai_client).plan_scenes("   ", 10.0)

    openai_client.chat.completions.create.assert_not_called()


def test_api_failure_propagates(settings, logger, openai_client):
    openai_client.chat.completions.create.side_effect = RuntimeError("rate limited")

    with pytest.raises(Exception, match="OpenAI chat API error"):
        ScenePlanner(settings, logger, client=openai_client).plan_scenes("Story.", 10.0)
