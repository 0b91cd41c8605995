"""Capture state machine and exclusive camera lifecycle."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Protocol

from food_capture.domain.errors import (
    AnalysisError,
    CaptureError,
    EncodeError,
    InvalidTransitionError,
    PipelineError,
)
from food_capture.services.analysis import (
    AnalysisResult,
    AnalysisRouter,
    CaptureMode,
    CapturePayload,
)
from food_capture.services.images import (
    DEFAULT_MAX_DIMENSION,
    DEFAULT_QUALITY,
    NormalizedImage,
    normalize_image,
)

_logger = logging.getLogger(__name__)


class CameraStream(Protocol):
    """A live camera stream."""

    async def read_frame(self) -> bytes:
        """Return the current frame as encoded image bytes."""

    async def close(self) -> None:
        """Stop the stream and release the device."""


class CameraProvider(Protocol):
    """Platform camera access."""

    async def open(self) -> CameraStream:
        """Acquire the camera; raise CaptureError when it is unavailable."""


@dataclass(frozen=True)
class AnalysisOutcome:
    """Result of a finished capture: either a result or the analysis error."""

    mode: CaptureMode
    result: AnalysisResult | None = None
    error: AnalysisError | None = None
    image: NormalizedImage | None = None
    label: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class ModeSelect:
    mode: CaptureMode


@dataclass(frozen=True)
class CameraLive:
    mode: CaptureMode


@dataclass(frozen=True)
class UploadEntry:
    """File upload path, entered directly or after the camera failed."""

    mode: CaptureMode
    error: PipelineError | None = None


@dataclass(frozen=True)
class CapturedPreview:
    mode: CaptureMode
    image: NormalizedImage
    label: str | None = None


@dataclass(frozen=True)
class SelfLabeling:
    mode: CaptureMode
    image: NormalizedImage
    label: str | None = None


@dataclass(frozen=True)
class Submitting:
    mode: CaptureMode


@dataclass(frozen=True)
class Closed:
    outcome: AnalysisOutcome | None = None


CaptureState = (
    Idle
    | ModeSelect
    | CameraLive
    | UploadEntry
    | CapturedPreview
    | SelfLabeling
    | Submitting
    | Closed
)

_OPEN_STATES = (ModeSelect, CameraLive, UploadEntry, CapturedPreview, SelfLabeling)


@dataclass
class CaptureController:
    """Drive one capture from mode selection to an analysis outcome.

    At most one camera stream is held at a time. Every transition away from
    CameraLive releases it, and an acquisition or analysis that completes
    after the controller has moved on is released or discarded.
    """

    camera: CameraProvider
    router: AnalysisRouter
    max_dimension: int = DEFAULT_MAX_DIMENSION
    quality: float = DEFAULT_QUALITY
    _state: CaptureState = field(default_factory=Idle, init=False)
    _stream: CameraStream | None = field(default=None, init=False)
    _camera_lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)
    _generation: int = field(default=0, init=False)

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def is_streaming(self) -> bool:
        return self._stream is not None

    async def __aenter__(self) -> "CaptureController":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def open(self, mode: CaptureMode = CaptureMode.MEAL_PHOTO) -> CaptureState:
        """Leave Idle and enter the initial mode."""
        self._require("open", Idle)
        self._state = ModeSelect(mode)
        return await self.select_mode(mode)

    async def select_mode(self, mode: CaptureMode) -> CaptureState:
        """Switch modes, discarding any pending capture."""
        self._require("select mode", *_OPEN_STATES)
        self._generation += 1
        await self._release_stream()
        self._state = ModeSelect(mode)
        if mode.uses_camera:
            await self._start_camera(mode)
        return self._state

    async def retry_camera(self) -> CaptureState:
        state = self._require("retry camera", UploadEntry)
        self._generation += 1
        await self._start_camera(state.mode)
        return self._state

    async def capture(self) -> CaptureState:
        """Take the current frame and stop the stream."""
        state = self._require("capture", CameraLive)
        stream = self._stream
        if stream is None:
            raise InvalidTransitionError("capture without a stream", state)
        generation = self._generation
        try:
            frame = await stream.read_frame()
            image = normalize_image(frame, self.max_dimension, self.quality)
        except (CaptureError, EncodeError) as exc:
            if generation == self._generation:
                await self._release_stream()
                self._state = UploadEntry(state.mode, exc)
            raise
        except BaseException:
            if generation == self._generation:
                await self._release_stream()
                self._state = ModeSelect(state.mode)
            raise
        if generation != self._generation:
            _logger.info("Discarding frame captured after mode change")
            return self._state
        await self._release_stream()
        self._state = CapturedPreview(state.mode, image)
        return self._state

    async def upload(self, source: bytes | str) -> CaptureState:
        """Use an uploaded image instead of the camera."""
        state = self._require("upload", CameraLive, UploadEntry)
        await self._release_stream()
        try:
            image = normalize_image(source, self.max_dimension, self.quality)
        except EncodeError as exc:
            self._state = UploadEntry(state.mode, exc)
            raise
        self._state = CapturedPreview(state.mode, image)
        return self._state

    async def retake(self) -> CaptureState:
        """Discard the captured image and go back to the camera."""
        state = self._require("retake", CapturedPreview, SelfLabeling)
        self._generation += 1
        self._state = ModeSelect(state.mode)
        await self._start_camera(state.mode)
        return self._state

    def begin_self_label(self) -> CaptureState:
        state = self._require("label", CapturedPreview)
        self._state = SelfLabeling(state.mode, state.image, state.label)
        return self._state

    def apply_label(self, text: str) -> CaptureState:
        state = self._require("apply label", SelfLabeling)
        label = text.strip() or None
        self._state = CapturedPreview(state.mode, state.image, label)
        return self._state

    def cancel_self_label(self) -> CaptureState:
        state = self._require("cancel label", SelfLabeling)
        self._state = CapturedPreview(state.mode, state.image, state.label)
        return self._state

    async def confirm(self) -> AnalysisOutcome | None:
        """Submit the previewed image for analysis."""
        state = self._require("confirm", CapturedPreview)
        payload = CapturePayload(mode=state.mode, image=state.image, label=state.label)
        return await self._submit(payload)

    async def submit_barcode(self, code: str) -> AnalysisOutcome | None:
        state = self._require("submit barcode", ModeSelect)
        if state.mode is not CaptureMode.BARCODE:
            raise InvalidTransitionError("submit barcode", state)
        return await self._submit(CapturePayload(mode=state.mode, text=code))

    async def submit_query(self, text: str) -> AnalysisOutcome | None:
        state = self._require("submit query", ModeSelect)
        if state.mode is not CaptureMode.FREE_TEXT_SEARCH:
            raise InvalidTransitionError("submit query", state)
        return await self._submit(CapturePayload(mode=state.mode, text=text))

    async def close(self) -> None:
        """Release the camera and end the capture from any state."""
        self._generation += 1
        await self._release_stream()
        if not isinstance(self._state, Closed):
            self._state = Closed()

    async def _submit(self, payload: CapturePayload) -> AnalysisOutcome | None:
        generation = self._generation
        self._state = Submitting(payload.mode)
        try:
            result = await self.router.analyze(payload)
        except AnalysisError as exc:
            outcome = AnalysisOutcome(
                mode=payload.mode, error=exc, image=payload.image, label=payload.label
            )
        else:
            outcome = AnalysisOutcome(
                mode=payload.mode,
                result=result,
                image=payload.image,
                label=payload.label,
            )
        if generation != self._generation:
            _logger.info(
                "Discarding analysis result after close: mode=%s", payload.mode.value
            )
            return None
        self._state = Closed(outcome)
        return outcome

    async def _start_camera(self, mode: CaptureMode) -> None:
        generation = self._generation
        async with self._camera_lock:
            await self._release_stream()
            try:
                stream = await self.camera.open()
            except CaptureError as exc:
                if generation == self._generation:
                    _logger.info(
                        "Camera unavailable, falling back to upload: reason=%s",
                        exc.reason,
                    )
                    self._state = UploadEntry(mode, exc)
                return
            if generation != self._generation:
                await stream.close()
                return
            self._stream = stream
            self._state = CameraLive(mode)

    async def _release_stream(self) -> None:
        stream, self._stream = self._stream, None
        if stream is not None:
            await stream.close()

    def _require(self, operation: str, *states: type) -> CaptureState:
        if not isinstance(self._state, states):
            raise InvalidTransitionError(operation, self._state)
        return self._state
