"""Weights & Biases tracking for comment analyses."""

import os
from pathlib import Path

import pandas as pd
import wandb

from .schemas import CommentAnalysis


def init_tracking(project: str, item_id: str, config: dict):
    """Start a wandb run for one media item.

    Nested config sections are logged as dotted keys (``clustering.fine_divisor``).

    Args:
        project: wandb project name
        item_id: Media item being analyzed, used as the run name
        config: Full pipeline configuration

    Returns:
        Wandb run object
    """
    flat_config = pd.json_normalize(config, sep=".").to_dict(orient="records")[0] if config else {}
    return wandb.init(
        project=project,
        entity=os.getenv("WANDB_ENTITY"),
        name=item_id,
        job_type="cluster",
        config=flat_config,
    )


def log_analysis(analysis: CommentAnalysis):
    """Log comment counts and a per-cluster size/confidence table per level."""
    metrics = {
        "comments/total": len(analysis.comments),
        "comments/clustered": len(analysis.valid_indices),
        "comments/degraded": analysis.degraded_count,
    }
    for level in ("fine", "coarse"):
        result = analysis.clusters.get(level)
        metrics[f"{level}/cluster_count"] = len(result)
        metrics[f"{level}/clusters"] = wandb.Table(
            columns=["cluster_id", "size", "confidence"],
            data=[[c.id, c.size, c.confidence] for c in result.clusters],
        )
    wandb.log(metrics)


def finish_tracking():
    if wandb.run is not None:
        wandb.finish()


def save_file_artifact(file_path: Path, artifact_name: str, artifact_type: str):
    """Upload an output file as a wandb artifact and wait until it is stored."""
    artifact = wandb.Artifact(artifact_name, type=artifact_type)
    artifact.add_file(str(file_path))
    wandb.log_artifact(artifact)
    artifact.wait()
    return artifact
