"""Data management module for comment input files and analysis outputs."""

import json
import logging
from pathlib import Path
from typing import Optional

import pandas as pd
from pydantic import ValidationError

from .schemas import ClusterName, Comment, CommentAnalysis, EmbeddedComment
from .wandb_utils import save_file_artifact

# Raw comment field spellings accepted on input, mapped to Comment fields
FIELD_ALIASES = {
    "text": ("text", "textOriginal", "textDisplay"),
    "author_name": ("author_name", "authorName", "authorDisplayName"),
    "author_profile_image_url": ("author_profile_image_url", "authorProfileImageUrl"),
    "like_count": ("like_count", "likeCount"),
}


def normalize_comment_record(record: dict) -> Optional[Comment]:
    """Map one raw comment record onto a Comment.

    Returns:
        Comment, or None if the record has no usable text
    """
    fields = {}
    for field_name, aliases in FIELD_ALIASES.items():
        for alias in aliases:
            if record.get(alias) is not None:
                fields[field_name] = record[alias]
                break

    text = str(fields.get("text", "")).strip()
    if not text:
        return None
    fields["text"] = text

    try:
        return Comment(**fields)
    except ValidationError as e:
        logging.warning(f"Skipping invalid comment record: {e}")
        return None


class DataManager:
    """Reads comment files and writes analysis results for one media item."""

    def __init__(self, item_id, base_dir, track: bool = False):
        """Initialize data manager with an item-specific output directory.

        Args:
            item_id: Identifier of the media item (e.g. a video id)
            base_dir: Base directory for outputs
            track: If True, also log written files as wandb artifacts
        """
        self.item_id = item_id
        self.track = track

        self.output_dir = Path(base_dir) / self.item_id
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def load_comments(self, path) -> list[Comment]:
        """Load comments from a JSONL file.

        Lines without text are skipped.

        Args:
            path: Path to the JSONL file

        Returns:
            List of Comment objects, in file order
        """
        comments: list[Comment] = []
        skipped = 0

        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                comment = normalize_comment_record(json.loads(line))
                if comment is None:
                    skipped += 1
                    continue
                comments.append(comment)

        if skipped:
            logging.warning(f"Skipped {skipped} comment records without usable text")
        logging.info(f"Loaded {len(comments)} comments from {path}")
        return comments

    def save_embedded_comments(self, comments: list[EmbeddedComment]) -> Path:
        """Save embedded comments as parquet.

        Returns:
            Path to the written file
        """
        path = self.output_dir / "embedded_comments.parquet"

        records = [comment.model_dump() for comment in comments]
        for record in records:
            record["embedding"] = list(record["embedding"])
        df = pd.DataFrame(records)
        df.to_parquet(path, compression="snappy", index=False)

        if self.track:
            save_file_artifact(path, f"{self.item_id}_embedded_comments", "embedded_comments")
        return path

    def save_analysis(self, analysis: CommentAnalysis, names: Optional[list[ClusterName]] = None) -> Path:
        """Save clusters as JSON, with member indices into the input comments.

        Args:
            analysis: Result of the comment analysis
            names: Optional names for the coarse clusters

        Returns:
            Path to the written file
        """
        path = self.output_dir / "clusters.json"
        names_by_id = {name.cluster_id: name for name in names or []}

        data = {
            "item_id": self.item_id,
            "comment_count": len(analysis.comments),
            "clustered_count": len(analysis.valid_indices),
            "fine": self._levels_to_records(analysis, "fine", {}),
            "coarse": self._levels_to_records(analysis, "coarse", names_by_id),
        }

        with path.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

        if self.track:
            save_file_artifact(path, f"{self.item_id}_clusters", "cluster_result")
        return path

    def _levels_to_records(self, analysis, level, names_by_id):
        records = []
        for cluster in analysis.clusters.get(level).clusters:
            record = {
                "id": cluster.id,
                "confidence": cluster.confidence,
                "comment_indices": analysis.original_indices(cluster),
            }
            if cluster.id in names_by_id:
                record["name"] = names_by_id[cluster.id].name
            records.append(record)
        return records
