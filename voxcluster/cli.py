"""Command-line entry point: cluster a JSONL file of comments."""

import argparse
import asyncio
import logging
from pathlib import Path

import yaml
from dotenv import load_dotenv
from openai import OpenAI

from voxcluster.data_manager import DataManager
from voxcluster.errors import EmptyInputError
from voxcluster.pipeline import CommentAnalyzer
from voxcluster.stages.cluster import ClusterConfig
from voxcluster.stages.embed import EmbedConfig, EmbeddingGenerator
from voxcluster.stages.name import NamingConfig, generate_cluster_names
from voxcluster.wandb_utils import finish_tracking, init_tracking, log_analysis

load_dotenv()

logging.basicConfig(level=logging.INFO)
logging.getLogger("httpx").setLevel(logging.WARNING)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"


def load_config(path=None) -> dict:
    config_path = Path(path) if path else DEFAULT_CONFIG_PATH
    with open(config_path, "r") as f:
        return yaml.safe_load(f) or {}


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Cluster comments into fine and coarse themes")
    parser.add_argument("comments", help="JSONL file with one comment per line")
    parser.add_argument("--item-id", default=None, help="Media item id (default: input file stem)")
    parser.add_argument("--output-dir", default="output", help="Base output directory (default: output)")
    parser.add_argument("--config", default=None, help="YAML config file (default: bundled config.yaml)")
    parser.add_argument("--save-embeddings", action="store_true", help="Also write embedded comments as parquet")
    parser.add_argument("--name-clusters", action="store_true", help="Name coarse clusters with the chat model")
    parser.add_argument("--track", action="store_true", help="Log metrics and outputs to wandb")
    return parser.parse_args(argv)


def run(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    item_id = args.item_id or Path(args.comments).stem

    embed_config = EmbedConfig.from_dict(config.get("embedding", {}))
    cluster_config = ClusterConfig.from_dict(config.get("clustering", {}))
    naming_config = NamingConfig.from_dict(config.get("naming", {}))

    if args.track:
        init_tracking(config.get("project", "voxcluster"), item_id, config)

    try:
        data_manager = DataManager(item_id, args.output_dir, track=args.track)
        comments = data_manager.load_comments(args.comments)

        analyzer = CommentAnalyzer(EmbeddingGenerator(config=embed_config), cluster_config)
        try:
            analysis = asyncio.run(analyzer.run(comments))
        except EmptyInputError as e:
            logging.error(f"{e}")
            return 1

        if args.save_embeddings:
            data_manager.save_embedded_comments(list(analysis.comments))

        names = None
        if args.name_clusters:
            names = generate_cluster_names(OpenAI(), analysis, naming_config)

        path = data_manager.save_analysis(analysis, names)

        if args.track:
            log_analysis(analysis)

        logging.info(f"Analysis completed! Output saved to {path}")
        return 0
    finally:
        if args.track:
            finish_tracking()


def main(argv=None) -> int:
    return run(parse_args(argv))


if __name__ == "__main__":
    raise SystemExit(main())
