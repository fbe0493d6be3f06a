"""Command-line entry point.

Usage:
    # Classify one or more images
    garment-classifier classify shirt.jpg dress.png

    # Download both models and show their input shapes
    garment-classifier provision

    # Check classifier.yaml (or --config FILE)
    garment-classifier validate-config

Environment Variables:
    MINIO_ENDPOINT, MINIO_ACCESS_KEY, MINIO_SECRET_KEY, MINIO_SECURE,
    MODELS_DIR, NETWORK_UNMETERED, LOG_LEVEL, LOG_FORMAT (see settings.py)
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from garment_classifier.classifier import GarmentClassifier
from garment_classifier.config import get_config_path, load_config, validate_config
from garment_classifier.inference import ClassificationResult
from garment_classifier.logger import setup_logging
from garment_classifier.settings import Settings, get_settings

logger = logging.getLogger(__name__)


class ConsoleListener:
    """Reports classifier events on stderr."""

    def on_failure(self, error: str) -> None:
        print(f"✗ {error}", file=sys.stderr)

    def on_success(self, results: list[ClassificationResult]) -> None:
        pass

    def on_model_ready(self) -> None:
        print("✓ Models ready", file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="garment-classifier",
        description="Classify garment color and type with two ONNX models",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Classifier YAML configuration (default: packaged classifier.yaml)",
    )
    parser.add_argument(
        "--models-dir",
        type=Path,
        default=None,
        help="Local model directory (default: MODELS_DIR)",
    )
    parser.add_argument(
        "--endpoint",
        type=str,
        default=None,
        help="MinIO endpoint (default: MINIO_ENDPOINT)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Logging level (default: LOG_LEVEL)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    classify = subparsers.add_parser("classify", help="Classify image files")
    classify.add_argument("images", nargs="+", help="Image paths or file:// URIs")

    subparsers.add_parser("provision", help="Download models and print input shapes")
    subparsers.add_parser("validate-config", help="Validate the classifier configuration")

    return parser


def _format_result(role: str, result: ClassificationResult) -> str:
    return f"  {role}: {result.label} ({result.score:.3f})"


async def run_classify(images: list[str], settings: Settings, models_dir: Path | None) -> int:
    classifier = GarmentClassifier.from_config(
        listener=ConsoleListener(), settings=settings, models_dir=models_dir
    )

    async with classifier:
        if not await classifier.provision():
            return 1

        exit_code = 0
        for image in images:
            print(image)
            report = await classifier.classify(image)
            if report is None:
                # ConsoleListener has already reported the failure
                exit_code = 1
                continue

            print(_format_result("color", report.color))
            print(_format_result("type", report.garment_type))

    return exit_code


async def run_provision(settings: Settings, models_dir: Path | None) -> int:
    classifier = GarmentClassifier.from_config(
        listener=ConsoleListener(), settings=settings, models_dir=models_dir
    )

    async with classifier:
        ready = await classifier.provision()

        for role in classifier.registry.roles:
            session = classifier.registry.get(role)
            if session is None:
                print(f"  ✗ {role}: {classifier.models[role].name} not provisioned")
            else:
                print(f"  ✓ {role}: {session.name} input={session.input_shape} path={session.path}")

    return 0 if ready else 1


def run_validate_config() -> int:
    errors = validate_config()

    if errors:
        print(f"✗ {get_config_path()} has {len(errors)} error(s):")
        for error in errors:
            print(f"  - {error}")
        return 1

    print(f"✓ {get_config_path()} is valid")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    settings = get_settings()
    if args.endpoint:
        settings = settings.model_copy(update={"MINIO_ENDPOINT": args.endpoint})

    setup_logging(args.log_level or settings.LOG_LEVEL, settings.LOG_FORMAT)

    if args.config is not None:
        load_config(args.config)

    if args.command == "validate-config":
        return run_validate_config()

    if args.command == "provision":
        return asyncio.run(run_provision(settings, args.models_dir))

    return asyncio.run(run_classify(args.images, settings, args.models_dir))


if __name__ == "__main__":
    sys.exit(main())
