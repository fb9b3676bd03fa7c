"""Audio transcription via the AssemblyAI SDK."""

from __future__ import annotations

from src.config import settings
from src.errors import ErrorCause, TranscriptionError


def transcribe_audio(raw: bytes) -> str:
    """Transcribe audio bytes and return speaker-labelled plain text.

    The SDK accepts bytes directly; no temp file needed.

    Raises:
        TranscriptionError: cause ``misconfiguration`` when no key is set,
            ``generic`` when AssemblyAI rejects the audio or is unreachable.
    """
    if not settings.assemblyai_api_key:
        raise TranscriptionError(
            "Audio transcription is not configured (set ASSEMBLYAI_API_KEY)",
            ErrorCause.MISCONFIGURATION,
        )

    import assemblyai as aai  # type: ignore[import-untyped]  # no stubs; import inside function

    aai.settings.api_key = settings.assemblyai_api_key
    transcriber = aai.Transcriber()
    # speaker_labels=True enables diarization so actions can be attributed.
    config = aai.TranscriptionConfig(
        speech_models=["universal-3-pro"],
        speaker_labels=True,
    )

    try:
        transcript = transcriber.transcribe(raw, config=config)
    except Exception as exc:
        # Infrastructure error: bad API key, network failure or provider outage.
        raise TranscriptionError(f"Transcription service unavailable: {exc}") from exc

    if transcript.status == aai.TranscriptStatus.error:
        # AssemblyAI rejected the audio content (corrupted, unsupported format, etc.)
        raise TranscriptionError(f"Transcription failed: {transcript.error}")

    utterances = transcript.utterances or []
    if utterances:
        return "\n".join(f"Speaker {u.speaker}: {u.text}" for u in utterances)
    return transcript.text or ""
