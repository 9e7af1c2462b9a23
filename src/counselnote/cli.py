"""CLI entry point."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import time

from .annotations import encode_image_file
from .app import CounselingApp
from .config import Config, load_config, save_config
from .logging_utils import setup_logging
from .models import CaptureError, StudentFields, TranscriptionError, ValidationError
from .recorder import list_input_devices
from .renderer import render_session


def _load(path: str) -> Config:
    if os.path.exists(path):
        return load_config(path)
    return Config()


def _record(app: CounselingApp, duration: int | None) -> bool:
    try:
        app.start_recording()
    except CaptureError as exc:
        print(f"Microphone unavailable: {exc}")
        print("Check the microphone permission and try again.")
        return False
    try:
        if duration:
            print(f"Recording for {duration}s...")
            time.sleep(duration)
        else:
            input("Recording... press Enter to stop.")
    finally:
        # Release the device even when the wait is interrupted.
        payload = app.stop_recording()
    if payload is None:
        return False
    print(f"Captured {len(payload.data)} bytes ({payload.mime_type})")
    return True


def _transcribe(app: CounselingApp, student_id: str, retries: bool):
    while True:
        try:
            return asyncio.run(app.transcribe(student_id))
        except TranscriptionError as exc:
            print(f"AI analysis failed: {exc}")
            if not retries:
                return None
            answer = input("Retry with the same recording? [y/N] ").strip().lower()
            if answer != "y":
                return None


def main() -> int:
    parser = argparse.ArgumentParser(prog="counselnote")
    sub = parser.add_subparsers(dest="command")

    devices_cmd = sub.add_parser("devices")
    devices_cmd.add_argument("--match", help="Filter device names by substring.")
    devices_cmd.add_argument(
        "--detail",
        action="store_true",
        help="Show detailed device channel info.",
    )

    config_cmd = sub.add_parser("config")
    config_cmd.add_argument("--out", default="counselnote_config.yml", help="Path.")

    counsel_cmd = sub.add_parser("counsel")
    counsel_cmd.add_argument("--config", default="counselnote_config.yml", help="Config.")
    counsel_cmd.add_argument("--class", dest="class_label", default="", help="Class.")
    counsel_cmd.add_argument("--number", default="", help="Student number.")
    counsel_cmd.add_argument("--name", default="", help="Student name.")
    counsel_cmd.add_argument("--mbti", default="", help="MBTI type.")
    counsel_cmd.add_argument("--notes", default="", help="Personality notes.")
    counsel_cmd.add_argument(
        "--duration", type=int, help="Seconds. Omit for manual stop."
    )
    counsel_cmd.add_argument("--image", help="Reflection note image to attach.")
    counsel_cmd.add_argument("--education-notes", help="Educational notes to attach.")
    counsel_cmd.add_argument(
        "--no-retry", action="store_true", help="Do not offer to retry on failure."
    )

    args = parser.parse_args()
    if args.command == "devices":
        devices = list_input_devices()
        if args.match:
            devices = [
                d for d in devices if args.match.lower() in d.get("name", "").lower()
            ]
        for device in devices:
            name = device.get("name", "Unknown")
            index = device.get("index", "?")
            line = f"[{index}] {name} (inputs: {device.get('max_input_channels', 0)})"
            if args.detail and "default_samplerate" in device:
                line = f"{line} [rate={device.get('default_samplerate')}]"
            print(line)
        return 0

    if args.command == "config":
        save_config(args.out, Config())
        print(f"Wrote {args.out}")
        return 0

    if args.command == "counsel":
        cfg = _load(args.config)
        logger, log_path = setup_logging(
            log_dir=cfg.log_dir,
            level=logging.DEBUG if cfg.debug_logging else logging.INFO,
            console=True,
        )
        logger.info("counsel command started (log: %s)", log_path)
        app = CounselingApp.from_config(cfg)
        fields = StudentFields(
            class_label=args.class_label,
            number=args.number,
            name=args.name,
            mbti=args.mbti,
            personality_notes=args.notes,
        )
        try:
            student = app.add_student(fields)
        except ValidationError as exc:
            print(f"{exc}. Class, number and name are required.")
            return 2

        if not _record(app, args.duration):
            return 1
        session = _transcribe(app, student.id, retries=not args.no_retry)
        if session is None:
            return 1

        image = encode_image_file(args.image) if args.image else None
        app.merger.attach(student.id, session.id, image=image, notes=args.education_notes)

        student = app.store.get(student.id)
        print(render_session(student, app.store.get_session(student.id, session.id)))
        return 0

    parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
