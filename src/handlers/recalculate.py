"""
Lambda handler for recalculating cycle statistics.

Invoked on a schedule (no trigger reason) or by an edit webhook whose
payload carries a ``reason`` such as ``start-updated``. Triggered invocations
are debounced; scheduled ones always run.
"""
import argparse
import json
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from aws_lambda_powertools import Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from src.services.calculator import RunOutcome, recalculate
from src.services.exceptions import ConfigurationError
from src.services.record_store import DynamoRecordStore
from src.utils.config import TrackerConfig
from src.utils.dynamo import get_dynamo
from src.utils.logging import bind_invocation, logger, log_exception

tracer = Tracer(service="cycle_calculator")


def get_trigger_reason(event: Optional[Dict[str, Any]], config: TrackerConfig) -> str:
    """
    Extract the trigger reason from an invocation event.

    Looks at ``event["reason"]``, then a JSON ``body`` with a ``reason``
    field, then falls back to the configured EVENT_REASON.

    Args:
        event: Lambda event (direct invoke, API Gateway or EventBridge)
        config: Calculator configuration

    Returns:
        Lower-cased reason, empty for scheduled runs
    """
    reason = None
    if isinstance(event, dict):
        reason = event.get("reason")
        body = event.get("body")
        if not reason and body:
            if isinstance(body, str):
                try:
                    body = json.loads(body)
                except ValueError:
                    logger.warning("Ignoring non-JSON webhook body")
                    body = {}
            if isinstance(body, dict):
                reason = body.get("reason")
    return str(reason or config.event_reason or "").strip().lower()


def run(reason: Optional[str], event: Optional[Dict[str, Any]] = None) -> RunOutcome:
    """
    Build the collaborators from the environment and run one invocation.

    Raises:
        ConfigurationError: If required configuration is missing
        RecordStoreError: If the record store fails
    """
    config = TrackerConfig.from_env()
    if reason is None:
        reason = get_trigger_reason(event, config)
    bind_invocation(logger, config.tracker_id, config.table_name, reason)

    store = DynamoRecordStore(get_dynamo(config.table_name), config.tracker_id)
    outcome = recalculate(store, config, reason, datetime.now(timezone.utc))

    if outcome.debounced:
        logger.info("Invocation debounced", extra={"reason": reason})
    else:
        logger.info("Invocation completed", extra={
            "reason": reason or "scheduled",
            "window_mode": outcome.result.window_mode.value,
            "records_updated": outcome.result.records_updated
        })
    return outcome


@logger.inject_lambda_context
@tracer.capture_lambda_handler
def handler(event: Dict, context: LambdaContext) -> Dict:
    """
    Handle a recalculation request.

    Args:
        event: Scheduled event or webhook payload
        context: Lambda context

    Returns:
        Response with the run summary

    Raises:
        Exception: Any fatal error is logged and re-raised so the invocation fails
    """
    try:
        outcome = run(None, event)
    except ConfigurationError:
        log_exception(logger, "Invalid configuration")
        raise
    except Exception:
        log_exception(logger, "Recalculation failed")
        raise

    return {
        "statusCode": 200,
        "body": outcome.model_dump_json()
    }


def main(argv: Optional[List[str]] = None) -> int:
    """
    Command-line entry point.

    Returns:
        Process exit status: 0 on success or debounce, 1 on failure
    """
    parser = argparse.ArgumentParser(description="Recalculate cycle statistics")
    parser.add_argument("--reason", default=None, help="trigger reason, e.g. start-updated")
    args = parser.parse_args(argv)

    try:
        outcome = run(args.reason.lower() if args.reason else None)
    except Exception:
        log_exception(logger, "Recalculation failed")
        return 1

    print(outcome.model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
