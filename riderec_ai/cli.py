"""Console entry point for RideRec AI driver recommendations."""
from __future__ import annotations

import argparse
import json
from dataclasses import replace
from pathlib import Path
from typing import Sequence

from .config import DEFAULT_CONFIG, RecommenderConfig, configure_logging
from .data_loader import CsvRideRepository
from .model_store import FileModelStore
from .pipeline import DriverRecommendationService


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="RideRec AI - personalized driver recommendations for riders")
    parser.add_argument("--data-dir", type=Path, default=None, help="Directory with drivers.csv, rides.csv, reviews.csv")
    parser.add_argument("--model-dir", type=Path, default=None, help="Directory holding per-rider model artifacts")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING, ...)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    recommend = subparsers.add_parser("recommend", help="Print the top drivers for a rider")
    recommend.add_argument("rider_id", type=int)
    recommend.add_argument("--top-n", type=int, default=DEFAULT_CONFIG.recommendation.default_top_n)
    recommend.add_argument("--json", action="store_true", help="Emit JSON instead of a table")

    train = subparsers.add_parser("train", help="Train a model for a rider if none exists")
    train.add_argument("rider_id", type=int)

    exists = subparsers.add_parser("exists", help="Report whether a rider has a trained model")
    exists.add_argument("rider_id", type=int)

    invalidate = subparsers.add_parser("invalidate", help="Delete a rider's trained model")
    invalidate.add_argument("rider_id", type=int)
    return parser


def build_service(config: RecommenderConfig) -> DriverRecommendationService:
    repository = CsvRideRepository(config.paths.data_dir)
    store = FileModelStore(config.paths.model_dir)
    return DriverRecommendationService(repository, repository, store, config)


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level.upper())

    config: RecommenderConfig = DEFAULT_CONFIG
    if args.data_dir is not None or args.model_dir is not None:
        paths = config.paths
        if args.data_dir is not None:
            paths = replace(paths, data_dir=args.data_dir)
        if args.model_dir is not None:
            paths = replace(paths, model_dir=args.model_dir)
        config = replace(config, paths=paths)

    service = build_service(config)

    if args.command == "recommend":
        drivers = service.get_recommended_drivers_for_user(args.rider_id, args.top_n)
        if args.json:
            print(json.dumps([driver.to_dict() for driver in drivers], indent=2))
        else:
            for rank, driver in enumerate(drivers, start=1):
                rating = "n/a" if driver.average_rating is None else f"{driver.average_rating:.2f}"
                print(
                    f"{rank:>2}. driver {driver.driver_id} | score={driver.score:.3f} "
                    f"(bonus {driver.history_bonus:+.2f}, {driver.strategy}) | rating={rating} | rides={driver.total_rides}"
                )
            if not drivers:
                print("No drivers available.")
        return 0

    if args.command == "train":
        trained = service.train_model_for_user(args.rider_id)
        print(f"Model for rider {args.rider_id}: {'ready' if trained else 'not enough reviewed rides'}")
        return 0 if trained else 1

    if args.command == "exists":
        present = service.model_exists_for_user(args.rider_id)
        print(f"Model for rider {args.rider_id} {'exists' if present else 'does not exist'}")
        return 0 if present else 1

    service.invalidate_user_model(args.rider_id)
    print(f"Model for rider {args.rider_id} invalidated")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
