# src/tasktalk/tts/engine.py

from __future__ import annotations

import logging
import queue
import re
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

XTTS_MODEL_NAME = "tts_models/multilingual/multi-dataset/xtts_v2"
DEFAULT_SAMPLE_RATE = 24000

_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")


@dataclass(frozen=True, slots=True)
class TTSConfig:
    """Runtime TTS config resolved from settings."""

    speaker_wav: str | None
    xtts_speaker_name: str
    xtts_language: str

    @classmethod
    def from_settings(cls, settings: Any) -> TTSConfig:
        return cls(
            speaker_wav=getattr(settings, "speaker_wav", None) or None,
            xtts_speaker_name=getattr(settings, "xtts_speaker_name", None) or "Ana Florence",
            xtts_language=getattr(settings, "xtts_language", None) or "en",
        )


def split_sentences(text: str) -> list[str]:
    """Split a reply into sentences so playback can start before synthesis of the rest."""
    flat = " ".join((text or "").split())
    return [s for s in _SENTENCE_SPLIT_RE.split(flat) if s.strip()]


class TTSEngine:
    """
    Best-effort text-to-speech for engine replies.

    - Optional dependencies: if torch/TTS/sounddevice are missing the engine
      disables itself instead of failing; text processing is unaffected.
    - Synthesis and playback happen in a worker thread.
    - Speaker WAV is optional; if missing/unreadable, a named XTTS speaker is used.
    """

    def __init__(self, enabled: bool, settings: Any = None) -> None:
        self.enabled = bool(enabled)
        self._cfg = TTSConfig.from_settings(settings)

        self._queue: queue.Queue[str | None] | None = None
        self._worker: threading.Thread | None = None

        self._tts_model: Any = None
        self._sample_rate: int = DEFAULT_SAMPLE_RATE

        self._sd: Any = None  # sounddevice module (runtime import)
        self._stop_requested = False

        if not self.enabled:
            logger.info("TTS disabled.")
            return

        # Imports can be slow; log first so the user isn't stuck in silence.
        logger.info("TTS enabling: importing dependencies (torch/TTS/sounddevice)... this may take a while.")

        try:
            import sounddevice as sd
            import torch
            from TTS.api import TTS
        except Exception as e:
            self.enabled = False
            logger.warning(
                "TTS is enabled, but dependencies are missing or failed to import. "
                "Install the 'tts' extra to enable speech. Error: %r",
                e,
            )
            return

        self._sd = sd

        try:
            device = "cuda" if torch.cuda.is_available() else "cpu"
            logger.info("Initializing XTTS (device=%s). First run may download large model files.", device)
            self._tts_model = TTS(XTTS_MODEL_NAME).to(device)
        except Exception as e:
            self.enabled = False
            logger.error("Failed to initialize XTTS model: %r", e)
            return

        sr = getattr(getattr(self._tts_model, "synthesizer", None), "output_sample_rate", None)
        if isinstance(sr, int) and sr > 0:
            self._sample_rate = sr

        self._queue = queue.Queue()
        self._worker = threading.Thread(target=self._audio_worker, name="tts-worker", daemon=True)
        self._worker.start()

        logger.info("TTS ready (sample_rate=%s).", self._sample_rate)

    def _speaker_wav(self) -> str | None:
        wav_path = (self._cfg.speaker_wav or "").strip()
        if not wav_path:
            return None
        p = Path(wav_path)
        if p.is_file():
            return str(p)
        logger.warning("speaker_wav is set but file does not exist: %s. Falling back to speaker name.", wav_path)
        return None

    def _synthesize(self, text: str) -> Any:
        wav_file = self._speaker_wav()
        if wav_file:
            return self._tts_model.tts(text=text, language=self._cfg.xtts_language, speaker_wav=wav_file)
        return self._tts_model.tts(text=text, language=self._cfg.xtts_language, speaker=self._cfg.xtts_speaker_name)

    def _audio_worker(self) -> None:
        logger.info("TTS worker thread started.")
        assert self._queue is not None

        while True:
            item = self._queue.get()
            try:
                if item is None:
                    logger.info("TTS worker received stop signal.")
                    return

                text = " ".join(str(item).split())
                if not text:
                    continue

                try:
                    audio = self._synthesize(text)
                except Exception as e:
                    logger.error("TTS synthesis failed: %r", e)
                    continue

                try:
                    self._sd.play(audio, self._sample_rate)
                    self._sd.wait()
                except Exception as e:
                    logger.error("TTS playback failed: %r", e)
            finally:
                self._queue.task_done()

    def speak_sentence(self, text: str) -> None:
        """Queue a sentence for playback (no-op if disabled)."""
        if not self.enabled or self._queue is None:
            return
        self._queue.put(text)

    def speak(self, text: str) -> None:
        """Queue a whole reply, one sentence at a time."""
        for sentence in split_sentences(text):
            self.speak_sentence(sentence)

    def wait_all(self) -> None:
        """Block until all queued items are processed (no-op if disabled)."""
        if not self.enabled or self._queue is None:
            return
        self._queue.join()

    def shutdown(self) -> None:
        """Request a clean shutdown of the worker (no-op if disabled)."""
        if not self.enabled or self._queue is None or self._stop_requested:
            return
        self._stop_requested = True

        logger.info("Stopping TTS worker...")
        self._queue.put(None)
        self._queue.join()

        if self._worker is not None:
            self._worker.join(timeout=2.0)

        logger.info("TTS stopped.")
