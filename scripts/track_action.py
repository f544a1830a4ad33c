"""CLI script to credit a gamification action by hand."""
from __future__ import annotations

import argparse
import json

from school_erp.tasks.gamification import track_action


def _metadata(raw: str) -> dict:
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise argparse.ArgumentTypeError(f"Invalid JSON: {exc}") from exc
    if not isinstance(value, dict):
        raise argparse.ArgumentTypeError("Metadata must be a JSON object")
    return value


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Credit a gamification action for a user",
    )
    parser.add_argument("--user-id", type=str, required=True, help="User to credit")
    parser.add_argument(
        "--action-type",
        type=str,
        required=True,
        help="Action type, e.g. document_upload",
    )
    parser.add_argument(
        "--metadata",
        type=_metadata,
        default=None,
        help="JSON object stored with the activity",
    )
    parser.add_argument("--school-id", type=str, help="School the user belongs to")
    parser.add_argument(
        "--async",
        action="store_true",
        dest="use_async",
        help="Queue task asynchronously instead of running immediately",
    )

    args = parser.parse_args()
    task_args = (args.user_id, args.action_type, args.metadata, args.school_id)

    print(f"Crediting {args.action_type} for user {args.user_id}")
    if args.use_async:
        task = track_action.apply_async(args=task_args)
        print(f"Task queued: {task.id}")
    else:
        result = track_action.run(*task_args)
        print(f"Result: {result}")


if __name__ == "__main__":
    main()
