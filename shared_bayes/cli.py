"""
shared-bayes - command line access to a Redis-backed Naive Bayes classifier, dood!
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from redis.exceptions import RedisError

from .classifier import NaiveBayesClassifier
from .config import ConfigManager
from .exceptions import BayesError
from .logging_utils import initLogging
from .tokenizer import WordTokenizer

# Configure basic logging first
logging.basicConfig(format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", level=logging.WARNING)
logger = logging.getLogger(__name__)


def parseArguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="shared-bayes",
        description="Train and query a Naive Bayes classifier stored in Redis, dood!",
    )
    parser.add_argument(
        "-c",
        "--config",
        default="config.toml",
        help="Path to configuration file (default: config.toml)",
    )
    parser.add_argument(
        "--config-dir",
        action="append",
        help="Directory to search for .toml config files recursively (can be specified multiple times)",
    )
    parser.add_argument("--dotenv", default=".env", help="Path to .env file (default: .env)")
    parser.add_argument("-n", "--namespace", help="Override [classifier] namespace")
    parser.add_argument("--correction", type=float, help="Override [classifier] correction")

    commands = parser.add_subparsers(dest="command", required=True)

    for name, helpText in (("train", "Train TEXT as LABEL"), ("untrain", "Untrain TEXT from LABEL")):
        command = commands.add_parser(name, help=helpText)
        command.add_argument("label")
        command.add_argument("text")

    for name, helpText in (("classify", "Print the best label for TEXT"), ("scores", "Print scores of TEXT")):
        command = commands.add_parser(name, help=helpText)
        command.add_argument("text")

    commands.add_parser("flush", help="Delete all labels of the namespace")
    commands.add_parser("labels", help="Print active labels")
    commands.add_parser("stats", help="Print per-label statistics")

    purge = commands.add_parser("purge", help="Delete ALL keys starting with the namespace")
    purge.add_argument("--confirm", action="store_true", help="Really delete everything")

    return parser.parse_args(argv)


def printJson(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False, sort_keys=True))


async def runCommand(args: argparse.Namespace, classifier: NaiveBayesClassifier) -> int:
    """
    Run parsed command against a classifier

    Returns:
        Process exit code
    """
    match args.command:
        case "train":
            printJson(await classifier.train(args.label, args.text))
        case "untrain":
            printJson(await classifier.untrain(args.label, args.text))
        case "classify":
            label = await classifier.classify(args.text)
            if label is None:
                logger.warning("No label matches given text")
                return 1
            print(label)
        case "scores":
            printJson(await classifier.scores(args.text))
        case "flush":
            await classifier.flush()
        case "labels":
            printJson(await classifier.labels())
        case "stats":
            printJson((await classifier.getModelStats()).toDict())
        case "purge":
            if not args.confirm:
                logger.error("Refusing to purge namespace without --confirm")
                return 2
            print(await classifier.purgeNamespace())
        case _:
            raise ValueError(f"Unknown command: {args.command}")

    return 0


async def runWithConfig(args: argparse.Namespace) -> int:
    configManager = ConfigManager(configPath=args.config, configDirs=args.config_dir, dotEnvFile=args.dotenv)
    initLogging(configManager.getLoggingConfig())

    classifierSection = configManager.config.setdefault("classifier", {})
    if args.namespace:
        classifierSection["namespace"] = args.namespace
    if args.correction is not None:
        classifierSection["correction"] = args.correction

    classifier = NaiveBayesClassifier.fromConfig(configManager, WordTokenizer())
    try:
        return await runCommand(args, classifier)
    finally:
        await classifier.close()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parseArguments(argv)

    try:
        return asyncio.run(runWithConfig(args))
    except BayesError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1
    except RedisError as e:
        # The effect of a failed call is unknown, it may have been applied
        logger.error(f"Redis failure, command may or may not have been applied: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
