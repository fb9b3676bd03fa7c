"""Run a local audio file through the full pipeline and print progress.

Usage:
    python scripts/process_recording.py path/to/audio.webm --user-id <uuid> \
        --duration 120 --title "Call with Dr. Smith"
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.config import settings
from src.pipeline.models import MeetingMetadata, Participant, ProcessingProgress
from src.pipeline.orchestrator import PipelineOrchestrator
from src.pipeline_config import PipelineConfig
from src.storage import SupabaseStore


def print_progress(progress: ProcessingProgress) -> None:
    print(
        f"[{progress.stage.value:>12}] {progress.progress:3d}%  "
        f"{progress.elapsed_seconds:5.1f}s elapsed  {progress.message}"
    )


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("audio", type=Path, help="Audio file to process")
    parser.add_argument("--user-id", required=True, help="Owner of the recording")
    parser.add_argument("--duration", type=float, default=None, help="Audio length in seconds")
    parser.add_argument("--title", default="Untitled Recording")
    parser.add_argument("--type", dest="meeting_type", default="general")
    parser.add_argument("--participants", default="", help="Comma-separated names")
    parser.add_argument("--context", default="")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    metadata = MeetingMetadata(
        title=args.title,
        meeting_type=args.meeting_type,
        participants=[Participant(name=n.strip()) for n in args.participants.split(",") if n.strip()],
        context=args.context,
    )
    orchestrator = PipelineOrchestrator(
        SupabaseStore(), config=PipelineConfig.from_settings(settings)
    )
    outcome = asyncio.run(
        orchestrator.run(
            args.user_id,
            metadata,
            args.duration,
            payload=args.audio.read_bytes(),
            on_progress=print_progress,
        )
    )

    print()
    print(f"Outcome: {outcome.kind.value} (success={outcome.success})")
    print(outcome.message)
    if outcome.error:
        print(f"Error: {outcome.error}")
    return 0 if outcome.success else 1


if __name__ == "__main__":
    sys.exit(main())
