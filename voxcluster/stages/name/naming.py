"""Cluster-naming consumer: request payload, service call and response normalization.

The names themselves come from an external chat model. This module only
prepares what the model reads and maps whatever it answers onto
``ClusterName`` records.
"""

import logging
from dataclasses import dataclass
from typing import Any

from openai import OpenAI

from voxcluster.schemas import ClusterName, ClusterResult, CommentAnalysis
from voxcluster.stages.client import get_json_response

FALLBACK_NAME = "unnamed feeling"
FALLBACK_CONFIDENCE = 0.5
DEFAULT_CONFIDENCE = 0.7

SYSTEM_PROMPT = """You name clusters of YouTube comments about music videos.

Your names should be:
- Evocative and poetic, like "late-night solitude" or "childhood safety" or "post-breakup spiral"
- 2-4 words maximum
- Feelings/moods/experiences, NOT categories
- Lowercase, no punctuation

Respond with JSON: {"clusters": [{"clusterId": number, "name": "string", "confidence": 0.0-1.0}]}
Confidence reflects how coherent the cluster feels (1.0 = very tight theme, 0.5 = mixed)."""


@dataclass
class NamingConfig:
    model: str = "gpt-4o-mini"
    temperature: float = 0.7
    level: str = "coarse"

    # How much of each cluster the model sees
    max_comments_per_cluster: int = 10
    max_chars_per_comment: int = 150

    @classmethod
    def from_dict(cls, config_dict):
        # Creates config from dict, using defaults for missing keys.
        return cls(**{k: v for k, v in config_dict.items() if k in cls.__annotations__})


def build_naming_payload(analysis: CommentAnalysis, config: NamingConfig) -> list[dict]:
    """Collect a sample of comment texts for every cluster at one level.

    Args:
        analysis: Clustered comments
        config: Which level to name and how much text to include

    Returns:
        List of {"id": cluster id, "comments": [text, ...]} dicts
    """
    result = analysis.clusters.get(config.level)
    payload = []
    for cluster in result.clusters:
        texts = analysis.texts(cluster)[:config.max_comments_per_cluster]
        payload.append({
            "id": cluster.id,
            "comments": [text[:config.max_chars_per_comment] for text in texts],
        })
    return payload


def format_naming_prompt(payload: list[dict]) -> str:
    descriptions = []
    for cluster in payload:
        lines = "\n".join(f'- "{text}"' for text in cluster["comments"])
        descriptions.append(
            f"Cluster {cluster['id']} ({len(cluster['comments'])} comments):\n{lines}"
        )
    return "Name these comment clusters:\n\n" + "\n\n".join(descriptions)


def fallback_names(result: ClusterResult) -> list[ClusterName]:
    return [
        ClusterName(cluster_id=cluster.id, name=FALLBACK_NAME, confidence=FALLBACK_CONFIDENCE)
        for cluster in result.clusters
    ]


def parse_cluster_names(raw: Any, result: ClusterResult) -> list[ClusterName]:
    """Normalize a naming-service answer into one ClusterName per entry.

    Accepts a dict holding the entries under "clusters" or "names", or a
    bare list of entries. Each entry may spell the id as "clusterId" or
    "cluster_id"; a missing id falls back to the cluster at the same
    position. Entries naming unknown clusters are dropped.

    Args:
        raw: Decoded JSON from the naming service
        result: The ClusterResult that was named

    Returns:
        ClusterName list, or the fallback names if nothing usable came back
    """
    entries = raw
    if isinstance(raw, dict):
        entries = raw.get("clusters", raw.get("names"))
    if not isinstance(entries, list):
        logging.warning("Unusable cluster naming response, using fallback names")
        return fallback_names(result)

    known_ids = {cluster.id for cluster in result.clusters}
    names = []
    for position, entry in enumerate(entries):
        if not isinstance(entry, dict):
            continue

        cluster_id = entry.get("clusterId", entry.get("cluster_id"))
        if cluster_id is None and position < len(result.clusters):
            cluster_id = result.clusters[position].id
        try:
            cluster_id = int(cluster_id)
        except (TypeError, ValueError):
            continue
        if cluster_id not in known_ids:
            continue

        try:
            confidence = float(entry.get("confidence", DEFAULT_CONFIDENCE))
        except (TypeError, ValueError):
            confidence = DEFAULT_CONFIDENCE

        names.append(
            ClusterName(
                cluster_id=cluster_id,
                name=str(entry.get("name") or FALLBACK_NAME),
                confidence=min(max(confidence, 0.0), 1.0),
            )
        )

    return names or fallback_names(result)


def generate_cluster_names(
    client: OpenAI, analysis: CommentAnalysis, config: NamingConfig
) -> list[ClusterName]:
    """Ask the chat model for a name per cluster at the configured level.

    Args:
        client: OpenAI-compatible client
        analysis: Clustered comments
        config: Model, level and payload limits

    Returns:
        ClusterName list; fallback names if the service fails
    """
    result = analysis.clusters.get(config.level)
    if not result.clusters:
        return []

    payload = build_naming_payload(analysis, config)
    response = get_json_response(
        client=client,
        system_prompt=SYSTEM_PROMPT,
        user_prompt=format_naming_prompt(payload),
        temperature=config.temperature,
        model=config.model,
    )

    if response is None:
        logging.warning("Cluster naming failed, using fallback names")
        return fallback_names(result)

    return parse_cluster_names(response, result)
