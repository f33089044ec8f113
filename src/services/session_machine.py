"""
Session workflow: Initial -> Main -> {Ask Anything, Challenge Me} -> Main.

``transition`` is a pure function over immutable ``SessionState`` values.
Actions that do not apply to the current mode return the state unchanged.
``SessionStateMachine`` holds the current value for a presentation layer,
serializes dispatches, and schedules the simulated processing delay that
completes an upload.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Union

from config import PROCESSING_DELAY_S
from services.challenge_bank import CHALLENGE_TEMPLATES, ChallengeItem, load_challenge_items
from services.challenge_evaluator import grade
from services.document_store import Document, DocumentStore
from services.question_answerer import Category, QuestionAnswerer
from utils.scheduling import ScheduledHandle, Scheduler, ThreadingScheduler
from utils.text_utils import is_blank

LOGGER = logging.getLogger("assistant.session")


class Mode(str, Enum):
    INITIAL = "initial"
    MAIN = "main"
    ASK_ANYTHING = "askAnything"
    CHALLENGE_ME = "challengeMe"
    CHALLENGE_RESULTS = "challengeResults"


@dataclass(frozen=True)
class ConversationEntry:
    question: str
    answer: str
    justification: str
    category: Category = Category.GENERAL


@dataclass(frozen=True)
class SessionState:
    mode: Mode = Mode.INITIAL
    document: Document | None = None
    history: tuple[ConversationEntry, ...] = ()
    challenge_items: tuple[ChallengeItem, ...] = ()
    current_challenge_index: int = 0
    answer_draft: str = ""
    upload_pending: bool = False
    upload_token: int = 0

    @property
    def current_item(self) -> ChallengeItem | None:
        if 0 <= self.current_challenge_index < len(self.challenge_items):
            return self.challenge_items[self.current_challenge_index]
        return None

    @property
    def is_last_item(self) -> bool:
        return self.current_challenge_index >= len(self.challenge_items) - 1


# ---------- Actions ----------


@dataclass(frozen=True)
class Upload:
    content: bytes
    mime_type: str = ""
    file_name: str = ""


@dataclass(frozen=True)
class UploadCompleted:
    token: int


@dataclass(frozen=True)
class OpenAsk:
    pass


@dataclass(frozen=True)
class OpenChallenge:
    pass


@dataclass(frozen=True)
class SubmitQuestion:
    text: str


@dataclass(frozen=True)
class SubmitChallengeAnswer:
    text: str


@dataclass(frozen=True)
class NextChallenge:
    pass


@dataclass(frozen=True)
class Back:
    pass


@dataclass(frozen=True)
class RestartChallenge:
    pass


@dataclass(frozen=True)
class BackToMain:
    pass


@dataclass(frozen=True)
class Reset:
    pass


Action = Union[
    Upload,
    UploadCompleted,
    OpenAsk,
    OpenChallenge,
    SubmitQuestion,
    SubmitChallengeAnswer,
    NextChallenge,
    Back,
    RestartChallenge,
    BackToMain,
    Reset,
]


@dataclass
class SessionContext:
    """Collaborators a transition may call into."""

    documents: DocumentStore = field(default_factory=DocumentStore)
    answerer: QuestionAnswerer = field(default_factory=QuestionAnswerer)
    templates: tuple[ChallengeItem, ...] = CHALLENGE_TEMPLATES


# ---------- Transitions ----------


def _on_upload(state: SessionState, action: Upload, ctx: SessionContext) -> SessionState:
    if state.mode is not Mode.INITIAL or state.upload_pending:
        return state
    document = ctx.documents.ingest_upload(action.content, action.mime_type, action.file_name)
    return replace(state, document=document, upload_pending=True, upload_token=state.upload_token + 1)


def _on_upload_completed(state: SessionState, action: UploadCompleted, ctx: SessionContext) -> SessionState:
    if state.mode is not Mode.INITIAL or not state.upload_pending or action.token != state.upload_token:
        return state
    return replace(state, mode=Mode.MAIN, upload_pending=False)


def _on_open_ask(state: SessionState, action: OpenAsk, ctx: SessionContext) -> SessionState:
    if state.mode is not Mode.MAIN:
        return state
    return replace(state, mode=Mode.ASK_ANYTHING)


def _start_challenge(state: SessionState, ctx: SessionContext) -> SessionState:
    return replace(
        state,
        mode=Mode.CHALLENGE_ME,
        challenge_items=load_challenge_items(ctx.templates),
        current_challenge_index=0,
        answer_draft="",
    )


def _on_open_challenge(state: SessionState, action: OpenChallenge, ctx: SessionContext) -> SessionState:
    if state.mode is not Mode.MAIN:
        return state
    return _start_challenge(state, ctx)


def _on_restart_challenge(state: SessionState, action: RestartChallenge, ctx: SessionContext) -> SessionState:
    if state.mode is not Mode.CHALLENGE_RESULTS:
        return state
    return _start_challenge(state, ctx)


def _on_submit_question(state: SessionState, action: SubmitQuestion, ctx: SessionContext) -> SessionState:
    if state.mode is not Mode.ASK_ANYTHING or is_blank(action.text):
        return state
    result = ctx.answerer.answer(action.text)
    entry = ConversationEntry(
        question=action.text,
        answer=result.answer_text,
        justification=result.justification,
        category=result.category,
    )
    return replace(state, history=state.history + (entry,))


def _on_submit_challenge_answer(
    state: SessionState, action: SubmitChallengeAnswer, ctx: SessionContext
) -> SessionState:
    item = state.current_item
    if state.mode is not Mode.CHALLENGE_ME or item is None or item.is_graded or is_blank(action.text):
        return state
    items = list(state.challenge_items)
    items[state.current_challenge_index] = grade(item, action.text)
    return replace(state, challenge_items=tuple(items), answer_draft=action.text)


def _on_next_challenge(state: SessionState, action: NextChallenge, ctx: SessionContext) -> SessionState:
    item = state.current_item
    if state.mode is not Mode.CHALLENGE_ME or item is None or not item.is_graded:
        return state
    if state.is_last_item:
        return replace(state, mode=Mode.CHALLENGE_RESULTS)
    return replace(state, current_challenge_index=state.current_challenge_index + 1, answer_draft="")


def _on_back(state: SessionState, action: Back, ctx: SessionContext) -> SessionState:
    if state.mode not in (Mode.ASK_ANYTHING, Mode.CHALLENGE_ME):
        return state
    return replace(state, mode=Mode.MAIN)


def _on_back_to_main(state: SessionState, action: BackToMain, ctx: SessionContext) -> SessionState:
    if state.mode is not Mode.CHALLENGE_RESULTS:
        return state
    return replace(state, mode=Mode.MAIN)


def _on_reset(state: SessionState, action: Reset, ctx: SessionContext) -> SessionState:
    ctx.documents.clear()
    # Token keeps counting so a completion scheduled before the reset never matches.
    return SessionState(upload_token=state.upload_token)


_HANDLERS: dict[type, Callable[[SessionState, Any, SessionContext], SessionState]] = {
    Upload: _on_upload,
    UploadCompleted: _on_upload_completed,
    OpenAsk: _on_open_ask,
    OpenChallenge: _on_open_challenge,
    SubmitQuestion: _on_submit_question,
    SubmitChallengeAnswer: _on_submit_challenge_answer,
    NextChallenge: _on_next_challenge,
    Back: _on_back,
    RestartChallenge: _on_restart_challenge,
    BackToMain: _on_back_to_main,
    Reset: _on_reset,
}


def transition(state: SessionState, action: Action, context: SessionContext | None = None) -> SessionState:
    """
    Apply *action* to *state* and return the resulting state.

    Returns *state* itself when the action is not valid in the current mode
    or carries blank input.

    Raises:
        UnsupportedType: For an Upload in INITIAL whose type is not text or PDF.
        TypeError: If *action* is not a known action.
    """
    handler = _HANDLERS.get(type(action))
    if handler is None:
        raise TypeError(f"Unknown session action: {action!r}")
    ctx = context or SessionContext()
    new_state = handler(state, action, ctx)
    if new_state is state:
        LOGGER.debug("Ignored %s in mode %s", type(action).__name__, state.mode.value)
    return new_state


# ---------- Projections ----------


def challenge_results(state: SessionState) -> tuple[int, int]:
    """Return (correct_count, total) for the current challenge run."""
    correct = sum(1 for item in state.challenge_items if item.is_correct)
    return correct, len(state.challenge_items)


def _item_view(item: ChallengeItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "question": item.question,
        "reference": item.reference,
        "userAnswer": item.user_answer,
        "feedback": item.feedback,
        "isCorrect": item.is_correct,
    }


def _document_view(document: Document | None) -> dict[str, Any] | None:
    if document is None:
        return None
    return {
        "fileName": document.file_name,
        "declaredType": document.declared_type.value,
        "summary": document.summary,
        "isPlaceholder": document.is_placeholder,
        "pageCount": document.page_count,
    }


def project(state: SessionState) -> dict[str, Any]:
    """Plain-dict view of *state* for the current mode."""
    view: dict[str, Any] = {
        "mode": state.mode.value,
        "uploadPending": state.upload_pending,
        "document": _document_view(state.document),
    }
    if state.mode is Mode.ASK_ANYTHING:
        view["history"] = [
            {
                "question": e.question,
                "answer": e.answer,
                "justification": e.justification,
                "category": e.category.value,
            }
            for e in state.history
        ]
    elif state.mode is Mode.CHALLENGE_ME:
        item = state.current_item
        view["challenge"] = {
            "index": state.current_challenge_index,
            "total": len(state.challenge_items),
            "item": _item_view(item) if item else None,
            "answerDraft": state.answer_draft,
            "isLast": state.is_last_item,
        }
    elif state.mode is Mode.CHALLENGE_RESULTS:
        correct, total = challenge_results(state)
        view["results"] = {
            "correctCount": correct,
            "total": total,
            "items": [_item_view(i) for i in state.challenge_items],
        }
    return view


# ---------- Holder ----------


class SessionStateMachine:
    """
    Owns the current SessionState for one session.

    All dispatches run under one lock, including the delayed upload
    completion which may fire on a scheduler thread.
    """

    def __init__(
        self,
        scheduler: Scheduler | None = None,
        processing_delay_s: float = PROCESSING_DELAY_S,
        context: SessionContext | None = None,
    ) -> None:
        self._lock = threading.RLock()
        self._state = SessionState()
        self._scheduler = scheduler or ThreadingScheduler()
        self._delay_s = processing_delay_s
        self._context = context or SessionContext()
        self._pending: ScheduledHandle | None = None

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    def view(self) -> dict[str, Any]:
        return project(self.state)

    def dispatch(self, action: Action) -> SessionState:
        with self._lock:
            previous = self._state
            current = transition(previous, action, self._context)
            self._state = current
            if isinstance(action, Reset):
                self._cancel_pending()
            elif isinstance(action, UploadCompleted) and not current.upload_pending:
                self._pending = None
            if current.upload_pending and current.upload_token != previous.upload_token:
                self._schedule_completion(current.upload_token)
            if current.mode is not previous.mode:
                LOGGER.info("Session mode %s -> %s", previous.mode.value, current.mode.value)
            return current

    def _schedule_completion(self, token: int) -> None:
        self._pending = self._scheduler.call_later(
            self._delay_s, lambda: self.dispatch(UploadCompleted(token))
        )

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    # Presentation-facing intents

    def upload(self, content: bytes, mime_type: str = "", file_name: str = "") -> SessionState:
        return self.dispatch(Upload(content=content, mime_type=mime_type, file_name=file_name))

    def open_ask(self) -> SessionState:
        return self.dispatch(OpenAsk())

    def open_challenge(self) -> SessionState:
        return self.dispatch(OpenChallenge())

    def submit_question(self, text: str) -> SessionState:
        return self.dispatch(SubmitQuestion(text))

    def submit_challenge_answer(self, text: str) -> SessionState:
        return self.dispatch(SubmitChallengeAnswer(text))

    def next_challenge(self) -> SessionState:
        return self.dispatch(NextChallenge())

    def back(self) -> SessionState:
        return self.dispatch(Back())

    def restart_challenge(self) -> SessionState:
        return self.dispatch(RestartChallenge())

    def back_to_main(self) -> SessionState:
        return self.dispatch(BackToMain())

    def reset(self) -> SessionState:
        return self.dispatch(Reset())
