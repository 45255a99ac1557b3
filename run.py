"""
FitForm Sync Client
===================

Composition root for the sync client.

Signs in, starts the telemetry stream and replays recorded joint frames
through the coordinator as if they came from the AR sensor loop.

Usage:
    python run.py frames.jsonl --email a@x.com --password p
    python run.py frames.jsonl --register --name A --email a@x.com --password p

Each line of the frames file is one JSON object mapping joint names to
``[x, y, z]`` positions.
"""

import argparse
import json
import logging
import os
import sys
import time
from typing import Dict, Iterator

import numpy as np

from fitform_sync.config import get_control_config, get_sync_config, get_telemetry_config
from fitform_sync.models import Credentials
from fitform_sync.sync import SyncCoordinator
from fitform_sync.utils import configure_logging

logger = logging.getLogger("fitform_sync.run")


def read_frames(path: str) -> Iterator[Dict[str, np.ndarray]]:
    """Yield joint frames from a JSON-lines recording."""
    with open(path, "r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                raw = json.loads(line)
                if not isinstance(raw, dict):
                    raise ValueError(f"expected a JSON object, got {type(raw).__name__}")
                frame = {joint: np.asarray(pos, dtype=float) for joint, pos in raw.items()}
            except (ValueError, TypeError) as e:
                logger.warning("Skipping line %d: %s", line_no, e)
                continue
            yield frame


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Replay joint frames through the FitForm sync client")
    parser.add_argument("frames", help="JSON-lines file of recorded joint frames")
    parser.add_argument("--name", default=os.getenv("FITFORM_NAME", ""))
    parser.add_argument("--email", default=os.getenv("FITFORM_EMAIL", ""))
    parser.add_argument("--password", default=os.getenv("FITFORM_PASSWORD", ""))
    parser.add_argument("--register", action="store_true", help="Create the account before tracking")
    parser.add_argument("--workout-id", type=int, default=None, help="Workout to make active")
    parser.add_argument("--rate", type=float, default=60.0, help="Sensor ticks per second")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    sync_config = get_sync_config()
    configure_logging(sync_config.log_level)

    telemetry = get_telemetry_config()
    control = get_control_config()
    telemetry_addr = f"{telemetry.host}:{telemetry.port}"
    print(f"""
╔══════════════════════════════════════════════════════╗
║          FitForm Sync Client                         ║
╠══════════════════════════════════════════════════════╣
║  Control API: {control.base_url:<39}║
║  Telemetry:   {telemetry_addr:<39}║
║  Tick rate:   {args.rate:<39.1f}║
╚══════════════════════════════════════════════════════╝
    """)

    credentials = Credentials(name=args.name, email=args.email, password=args.password)
    with SyncCoordinator.from_config() as coordinator:
        result = coordinator.register(credentials) if args.register else coordinator.login(credentials)
        if not result.ok:
            print(f"Sign in failed: {result.error}")
            return 1

        if args.workout_id is not None:
            coordinator.select_workout(args.workout_id)

        coordinator.start_tracking(wait=True)
        interval = 1.0 / args.rate if args.rate > 0 else 0.0

        try:
            for frame in read_frames(args.frames):
                coordinator.on_sensor_update(frame)
                time.sleep(interval)
        except OSError as e:
            print(f"Could not read frames: {e}")
            return 1
        except KeyboardInterrupt:
            print("Interrupted")

        coordinator.wait_for_poll(timeout=sync_config.poll_timeout)
        print(f"Repetitions: {coordinator.repetition_count}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
