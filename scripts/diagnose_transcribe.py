import argparse
import asyncio
import os
import sys
import time

SRC = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from counselnote.ai_client import DEFAULT_MODEL, GeminiClient
from counselnote.models import AudioPayload, StudentFields
from counselnote.pipeline import TranscriptionPipeline
from counselnote.roster import RosterStore


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("audio_path", help="Path to a WAV file to analyse.")
    parser.add_argument("--model", default=DEFAULT_MODEL, help="Gemini model name.")
    parser.add_argument("--name", default="Test Student", help="Student name.")
    parser.add_argument("--mbti", default="", help="Student MBTI.")
    parser.add_argument("--timeout", type=float, default=120.0, help="Seconds.")
    args = parser.parse_args()

    with open(args.audio_path, "rb") as handle:
        audio = AudioPayload(data=handle.read(), mime_type="audio/wav")

    store = RosterStore()
    student = store.register(
        StudentFields(class_label="1", number="1", name=args.name, mbti=args.mbti)
    )
    pipeline = TranscriptionPipeline(
        store, GeminiClient(model=args.model, timeout_seconds=args.timeout)
    )

    started = time.time()
    session = asyncio.run(pipeline.run(student, audio))
    elapsed = time.time() - started
    print(f"Transcription: {len(session.transcription)} chars")
    print(f"Feedback: {len(session.feedback)} chars")
    print(f"Elapsed: {elapsed:.2f}s")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
