"""Command-line runner for the decision core.

Commands:
    run <scenario>              Run a decision cycle (and position monitoring) from a scenario file
    schemas <out_dir>           Export the JSON Schemas of every contract
    validate <contract> <file>  Validate one JSON/YAML payload against a contract

Exit codes: 0 success, 1 invalid input, 2 usage or configuration error.
Results go to stdout as JSON; logs go to stderr.
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError

from contracts.schema_validator import MessageValidator, export_json_schemas
from fixtures import load_fixture, load_scenario
from shared.config import load_config
from shared.errors import ConfigError, CycleError
from shared.logging import init_structured_logger
from decision_plane.app.pipeline import DecisionCycle, apply_cooldowns

logger = logging.getLogger(__name__)


def _setup_logging(config) -> None:
    log_cfg = config.logging
    init_structured_logger(
        service_name=log_cfg.service_name,
        environment=log_cfg.environment,
        level=getattr(logging, log_cfg.level),
        json_output=log_cfg.json_output,
        logger_names=["decision_plane", "contracts", "shared", "fixtures"],
    )


def cmd_run(args, config) -> int:
    try:
        scenario = load_scenario(args.scenario, verify=not args.no_verify)
    except (FileNotFoundError, KeyError, ValidationError, ValueError) as e:
        logger.error("Cannot load scenario %s: %s", args.scenario, e)
        return 1

    portfolio = scenario.portfolio
    if portfolio is None:
        portfolio = config.default_portfolio_state()
    cycle = DecisionCycle.with_brains(config.cycle.enabled_brains)
    ids = iter(scenario.event_ids)

    try:
        result = cycle.run(
            scenario.mcl_inputs, portfolio, scenario.timestamp, scenario.correlation_id, ids
        )
        actions = cycle.monitor(
            scenario.positions,
            scenario.recent_results,
            result.snapshots,
            scenario.timestamp,
            scenario.correlation_id,
            ids,
            used=result.used_event_ids,
        )
    except CycleError as e:
        logger.error("Scenario %s rejected: %s", scenario.name, e)
        return 1

    output = result.to_dict()
    output["actions"] = [a.model_dump(mode="json") for a in actions]
    output["next_cooldowns"] = [
        c.model_dump(mode="json") for c in apply_cooldowns(portfolio, actions).cooldowns
    ]
    json.dump(output, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


def cmd_schemas(args, config) -> int:
    for path in export_json_schemas(args.out_dir):
        print(path)
    return 0


def cmd_validate(args, config) -> int:
    validator = MessageValidator()
    if args.contract not in validator.get_supported_contracts():
        logger.error("Unknown contract %s (known: %s)", args.contract, validator.get_supported_contracts())
        return 2
    try:
        payload = load_fixture(args.file, verify=not args.no_verify)
    except (FileNotFoundError, ValueError) as e:
        logger.error("Cannot read %s: %s", args.file, e)
        return 1
    result = validator.validate_message(payload, args.contract)
    json.dump(result.to_dict(), sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0 if result.is_valid else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="decision-core", description="Decision core runner")
    parser.add_argument("--config", default=None, help="YAML config file")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Run a decision cycle from a scenario file")
    run.add_argument("scenario", help="Scenario YAML/JSON (path, or name under fixtures/scenarios)")
    run.add_argument("--no-verify", action="store_true", help="Skip signature verification")
    run.set_defaults(handler=cmd_run)

    schemas = subparsers.add_parser("schemas", help="Export contract JSON Schemas")
    schemas.add_argument("out_dir", help="Output directory")
    schemas.set_defaults(handler=cmd_schemas)

    validate = subparsers.add_parser("validate", help="Validate one payload against a contract")
    validate.add_argument("contract", help="Contract name, e.g. trade_intent")
    validate.add_argument("file", help="Payload file (JSON or YAML)")
    validate.add_argument("--no-verify", action="store_true", help="Skip signature verification")
    validate.set_defaults(handler=cmd_validate)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    _setup_logging(config)
    return args.handler(args, config)


if __name__ == "__main__":
    sys.exit(main())
