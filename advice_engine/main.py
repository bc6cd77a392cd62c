#!/usr/bin/env python3
"""
Advice Engine - Main Entry Point
================================
Rule matching and concept resolution for targeted real-estate advice.

Usage:
    python main.py                    # Run the API server
    python main.py --evaluate RULE.json --answers ANSWERS.json --flows FLOWS.json
    python main.py --catalog FLOWS.json
    python main.py --test             # Run tests
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Add current directory to path
sys.path.insert(0, str(Path(__file__).parent))

from config.settings import settings


def setup_logging():
    """Configure logging"""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def run_server():
    """Run the API server"""
    from api.main import run
    run()


def _read_json(path: str):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def print_catalog(flows_path: str):
    """Print the field catalog discovered from a flows file"""
    from services.field_catalog import build_catalog

    catalog = build_catalog(_read_json(flows_path))
    print(json.dumps([f.to_dict() for f in catalog], indent=2))


def evaluate_file(rule_path: str, answers_path: str, flows_path: str = None):
    """Evaluate a rule tree file against an answers file and print the result"""
    from models.rule_tree import ConceptGroup, FieldGroup
    from services.field_catalog import build_catalog
    from services.rule_converter import lower_rule_tree
    from services.rules_evaluator import evaluate, max_score

    data = _read_json(rule_path)
    try:
        tree = FieldGroup.model_validate(data)
    except ValueError:
        # Concept-addressed rule files are lowered before evaluation
        tree = lower_rule_tree(ConceptGroup.model_validate(data))

    catalog = build_catalog(_read_json(flows_path)) if flows_path else []
    answers = {str(k): str(v) for k, v in _read_json(answers_path).items()}

    result = evaluate(tree, answers, catalog)
    print(json.dumps({**result.to_dict(), "max_score": max_score(tree)}, indent=2))


def run_tests():
    """Run the test suite"""
    import subprocess
    result = subprocess.run(
        [sys.executable, "-m", "pytest", "tests/", "-v"],
        cwd=str(Path(__file__).parent)
    )
    sys.exit(result.returncode)


def main():
    """Main entry point"""
    parser = argparse.ArgumentParser(
        description="Advice Engine - Rule matching and concept resolution for lead advice"
    )

    parser.add_argument(
        "--evaluate",
        metavar="RULE_FILE",
        help="Evaluate a rule tree JSON file"
    )

    parser.add_argument(
        "--answers",
        metavar="FILE",
        help="JSON object of collected answers (field id -> value)"
    )

    parser.add_argument(
        "--flows",
        metavar="FILE",
        help="JSON object of flow definitions (flow id -> questions)"
    )

    parser.add_argument(
        "--catalog",
        metavar="FLOWS_FILE",
        help="Print the field catalog for a flows file"
    )

    parser.add_argument(
        "--test",
        action="store_true",
        help="Run the test suite"
    )

    parser.add_argument(
        "--host",
        default=settings.api.host,
        help=f"API host (default: {settings.api.host})"
    )

    parser.add_argument(
        "--port",
        type=int,
        default=settings.api.port,
        help=f"API port (default: {settings.api.port})"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Run in debug mode"
    )

    args = parser.parse_args()

    setup_logging()
    logger = logging.getLogger(__name__)

    if args.evaluate:
        if not args.answers:
            parser.error("--evaluate requires --answers")
        evaluate_file(args.evaluate, args.answers, args.flows)

    elif args.catalog:
        print_catalog(args.catalog)

    elif args.test:
        logger.info("Running tests...")
        run_tests()

    else:
        # Update settings if command line args provided
        settings.api.host = args.host
        settings.api.port = args.port
        if args.debug:
            settings.api.debug = True
            settings.api.reload = True

        logger.info(f"Starting {settings.app_name} v{settings.app_version}")
        logger.info(f"Server: http://{args.host}:{args.port}")
        logger.info(f"Docs: http://{args.host}:{args.port}/docs")

        run_server()


if __name__ == "__main__":
    main()
