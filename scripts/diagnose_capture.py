import argparse
import os
import sys
import time

import numpy as np

SRC = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from counselnote.models import CaptureError
from counselnote.recorder import SessionRecorder, SoundDeviceCapture, find_input_device


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--device", help="Device name substring.")
    parser.add_argument("--seconds", type=float, default=5.0, help="Test duration.")
    parser.add_argument("--rate", type=int, default=16000, help="Sample rate.")
    parser.add_argument("--channels", type=int, default=1, help="Channels.")
    parser.add_argument("--out", help="Write the captured WAV here.")
    args = parser.parse_args()

    info = find_input_device(args.device)
    print(f"Input device: {info.get('name', '')}")
    print(f"Index: {info.get('index', '')}")
    print(f"Max input channels: {info.get('max_input_channels', 0)}")
    print(f"Default sample rate: {info.get('default_samplerate', '')}")

    recorder = SessionRecorder(
        SoundDeviceCapture(
            sample_rate_hz=args.rate,
            channels=args.channels,
            device_name=args.device,
        )
    )
    try:
        recorder.start()
    except CaptureError as exc:
        print(f"Capture failed: {exc}")
        return 1

    print(f"Recording {args.seconds:.1f}s...")
    time.sleep(args.seconds)
    payload = recorder.stop()

    # Skip the 44-byte WAV header.
    samples = np.frombuffer(payload.data[44:], dtype=np.int16).astype(np.float32)
    if samples.size:
        rms = float(np.sqrt(np.mean(samples**2)))
        peak = float(np.max(np.abs(samples)))
        print(f"RMS {rms:.1f} | Peak {peak:.0f} | {payload.duration_seconds:.2f}s")
    else:
        print("No samples captured.")

    if args.out:
        with open(args.out, "wb") as handle:
            handle.write(payload.data)
        print(f"Wrote {args.out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
