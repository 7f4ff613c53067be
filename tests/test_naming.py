import json
from types import SimpleNamespace

import pytest

from tests.conftest import make_analysis
from voxcluster.stages.name import (
    FALLBACK_NAME,
    NamingConfig,
    build_naming_payload,
    format_naming_prompt,
    generate_cluster_names,
    parse_cluster_names,
)


class FakeChatClient:
    """Minimal stand-in for ``OpenAI().chat.completions``."""

    def __init__(self, content=None, error=None, no_choices=False):
        self.requests = []
        self._content = content
        self._error = error
        self._no_choices = no_choices
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        self.requests.append(kwargs)
        if self._error is not None:
            raise self._error
        if self._no_choices:
            return SimpleNamespace(choices=[])
        message = SimpleNamespace(content=self._content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


@pytest.fixture
def analysis():
    texts = ["first " * 50, "second", "broken", "third", "fourth", "fifth"]
    return make_analysis(
        texts,
        valid_indices=[0, 1, 3, 4, 5],
        fine_groups=[[0, 1], [2], [3, 4]],
        coarse_groups=[[0, 1, 2], [3, 4]],
    )


def test_payload_uses_original_comment_texts(analysis):
    payload = build_naming_payload(analysis, NamingConfig(max_chars_per_comment=10))

    assert [cluster["id"] for cluster in payload] == [0, 1]
    assert payload[0]["comments"] == ["first firs", "second", "third"]
    assert payload[1]["comments"] == ["fourth", "fifth"]


def test_payload_limits_comments_per_cluster(analysis):
    payload = build_naming_payload(analysis, NamingConfig(level="coarse", max_comments_per_cluster=1))

    assert [len(cluster["comments"]) for cluster in payload] == [1, 1]


def test_payload_for_fine_level(analysis):
    payload = build_naming_payload(analysis, NamingConfig(level="fine"))

    assert len(payload) == 3


def test_prompt_lists_every_cluster(analysis):
    prompt = format_naming_prompt(build_naming_payload(analysis, NamingConfig()))

    assert "Cluster 0 (3 comments)" in prompt
    assert "Cluster 1 (2 comments)" in prompt
    assert '- "fifth"' in prompt


@pytest.mark.parametrize(
    "raw",
    [
        {"clusters": [{"clusterId": 1, "name": "quiet joy", "confidence": 0.9}]},
        {"names": [{"cluster_id": "1", "name": "quiet joy", "confidence": 0.9}]},
        [{"clusterId": 1, "name": "quiet joy", "confidence": 0.9}],
    ],
)
def test_parse_accepts_response_variants(analysis, raw):
    names = parse_cluster_names(raw, analysis.clusters.coarse)

    assert len(names) == 1
    assert names[0].cluster_id == 1
    assert names[0].name == "quiet joy"
    assert names[0].confidence == 0.9


def test_parse_falls_back_to_position_and_defaults(analysis):
    raw = {"clusters": [{"name": "summer nights"}, {"name": "", "confidence": "high"}]}

    names = parse_cluster_names(raw, analysis.clusters.coarse)

    assert [(n.cluster_id, n.name, n.confidence) for n in names] == [
        (0, "summer nights", 0.7),
        (1, FALLBACK_NAME, 0.7),
    ]


def test_parse_clamps_confidence_and_drops_unknown_ids(analysis):
    raw = {"clusters": [
        {"clusterId": 0, "name": "too sure", "confidence": 3},
        {"clusterId": 42, "name": "ghost"},
        "junk",
    ]}

    names = parse_cluster_names(raw, analysis.clusters.coarse)

    assert len(names) == 1
    assert names[0].confidence == 1.0


@pytest.mark.parametrize("raw", [None, "text", {"other": []}, {"clusters": []}])
def test_parse_unusable_response_gives_fallback(analysis, raw):
    names = parse_cluster_names(raw, analysis.clusters.coarse)

    assert [(n.cluster_id, n.name, n.confidence) for n in names] == [
        (0, FALLBACK_NAME, 0.5),
        (1, FALLBACK_NAME, 0.5),
    ]


def test_generate_names_round_trip(analysis):
    client = FakeChatClient(content=json.dumps({"clusters": [
        {"clusterId": 0, "name": "late night solitude", "confidence": 0.8},
        {"clusterId": 1, "name": "childhood safety", "confidence": 0.6},
    ]}))

    names = generate_cluster_names(client, analysis, NamingConfig(model="test-model"))

    assert [n.name for n in names] == ["late night solitude", "childhood safety"]
    request = client.requests[0]
    assert request["model"] == "test-model"
    assert request["response_format"] == {"type": "json_object"}
    assert "Cluster 1 (2 comments)" in request["messages"][1]["content"]


def test_generate_names_service_failure_gives_fallback(analysis):
    client = FakeChatClient(error=RuntimeError("service unavailable"))

    names = generate_cluster_names(client, analysis, NamingConfig())

    assert all(n.name == FALLBACK_NAME for n in names)
    assert len(names) == 2


def test_generate_names_invalid_json_gives_fallback(analysis):
    client = FakeChatClient(content="not json")

    names = generate_cluster_names(client, analysis, NamingConfig())

    assert [n.cluster_id for n in names] == [0, 1]
    assert all(n.name == FALLBACK_NAME for n in names)


def test_generate_names_without_choices_gives_fallback(analysis):
    client = FakeChatClient(no_choices=True)

    names = generate_cluster_names(client, analysis, NamingConfig())

    assert [(n.cluster_id, n.name) for n in names] == [(0, FALLBACK_NAME), (1, FALLBACK_NAME)]
