"""Application to synthesize Terraform JSON from a definition file.

EG: tf-aws-synth synth network.yaml --target dev --out build/main.tf.json
"""
import argparse
import logging
import sys
from typing import (
    List,
    Optional,
)

from tf_aws_synth.lib.errors import SynthesisError
from tf_aws_synth.logging_config import configure_logging
from tf_aws_synth.synth_config import (
    load_definition,
    synthesize,
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tf-aws-synth",
        description="Validate AWS resource definitions and emit Terraform JSON.",
    )
    parser.add_argument(
        "--log-level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        type=str.upper,
        help="Override the LOG_LEVEL environment variable",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    synth = commands.add_parser("synth", help="Write the Terraform JSON document")
    synth.add_argument("definition", help="YAML definition file")
    synth.add_argument("--target", help="Target name (default: first not skipped)")
    synth.add_argument("--out", help="Output file (default: stdout)")

    validate = commands.add_parser("validate", help="Validate without writing")
    validate.add_argument("definition", help="YAML definition file")
    validate.add_argument("--target", help="Target name (default: first not skipped)")
    return parser


def run(args: argparse.Namespace) -> None:
    definition = load_definition(args.definition)
    document = synthesize(definition, target_name=args.target)

    if args.command == "validate":
        logger.info("%s is valid: %d resources", args.definition, len(document))
    elif args.out:
        document.write(args.out)
    else:
        sys.stdout.write(document.to_json() + "\n")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    try:
        run(args)
    except SynthesisError as error:
        logger.error("%s: %s", type(error).__name__, error)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
