"""Smart Research Assistant main entry point."""

from __future__ import annotations

import html
import logging
import time

import streamlit as st

from config import PAGE_ICON, PAGE_SUBTITLE, PAGE_TITLE, PROCESSING_DELAY_S
from services.document_store import IngestError
from services.session_machine import Mode, SessionStateMachine, challenge_results

LOGGER = logging.getLogger("assistant.app")


def _machine() -> SessionStateMachine:
    if "assistant_session" not in st.session_state:
        st.session_state["assistant_session"] = SessionStateMachine()
    return st.session_state["assistant_session"]


def _act(fn, *args) -> None:
    fn(*args)
    st.rerun()


def _inject_css() -> None:
    st.markdown(
        """
        <style>
        .assistant-card { border: 1px solid #e5e7eb; border-radius: 10px; padding: 1rem 1.25rem; margin-bottom: 1rem; }
        .assistant-summary { background: #eff6ff; border-color: #bfdbfe; }
        .assistant-muted { color: #6b7280; font-style: italic; font-size: 0.9rem; }
        </style>
        """,
        unsafe_allow_html=True,
    )


def _wait_for_processing(machine: SessionStateMachine) -> None:
    deadline = time.monotonic() + PROCESSING_DELAY_S + 5.0
    with st.spinner("Processing document..."):
        while machine.state.upload_pending and time.monotonic() < deadline:
            time.sleep(0.1)
    st.rerun()


def _render_welcome(machine: SessionStateMachine) -> None:
    st.title(PAGE_TITLE)
    st.write(PAGE_SUBTITLE)
    nonce = int(st.session_state.get("document_upload_nonce", 0))
    uploaded = st.file_uploader(
        "Click to Upload Document",
        type=["pdf", "txt"],
        key=f"document_upload_{nonce}",
        help="PDF or TXT file",
    )
    if uploaded is None:
        return
    signature = (nonce, uploaded.name, uploaded.size)
    if signature == st.session_state.get("document_upload_signature"):
        if machine.state.upload_pending:
            _wait_for_processing(machine)
        return
    st.session_state["document_upload_signature"] = signature
    try:
        machine.upload(uploaded.getvalue(), mime_type=uploaded.type or "", file_name=uploaded.name)
    except IngestError as e:
        LOGGER.info("Upload rejected: %s", uploaded.name)
        st.error(str(e))
        return
    _wait_for_processing(machine)


def _render_main(machine: SessionStateMachine) -> None:
    state = machine.state
    document = state.document
    st.header("Document Loaded")
    summary = document.summary if document else ""
    st.markdown(
        f'<div class="assistant-card assistant-summary"><h4>Document Summary</h4><p>{html.escape(summary) or "No summary available."}</p></div>',
        unsafe_allow_html=True,
    )
    if document and document.is_placeholder:
        pages = f" ({document.page_count} pages)" if document.page_count else ""
        st.caption(
            f"PDF text extraction is not available{pages}; the summary and answers use the bundled reference document."
        )
    col1, col2 = st.columns(2)
    with col1:
        if st.button("Ask Anything", key="open_ask", use_container_width=True):
            _act(machine.open_ask)
    with col2:
        if st.button("Challenge Me", key="open_challenge", use_container_width=True):
            _act(machine.open_challenge)
    if st.button("Upload New Document", key="reset_session", use_container_width=True):
        st.session_state["document_upload_nonce"] = int(st.session_state.get("document_upload_nonce", 0)) + 1
        _act(machine.reset)


def _render_ask_anything(machine: SessionStateMachine) -> None:
    st.header("Ask Anything About the Document")
    if st.button("← Back to Main Menu", key="ask_back"):
        _act(machine.back)
    with st.form("ask_form", clear_on_submit=True):
        question = st.text_area(
            "Question",
            placeholder="Ask your question here, e.g., 'What is AI's role in drug discovery?'",
            label_visibility="collapsed",
        )
        if st.form_submit_button("Get Answer", use_container_width=True):
            _act(machine.submit_question, question)

    st.subheader("Conversation History")
    history = machine.state.history
    if not history:
        st.markdown('<p class="assistant-muted">No questions asked yet.</p>', unsafe_allow_html=True)
    for entry in history:
        with st.container(border=True):
            st.markdown(f"**Q:** {entry.question}")
            st.markdown(f"**A:** {entry.answer}")
            st.caption(f"Justification: {entry.justification}")


def _render_challenge(machine: SessionStateMachine) -> None:
    state = machine.state
    item = state.current_item
    if item is None:
        st.warning("No challenge questions available.")
        if st.button("Back to Main Menu", key="challenge_empty_back"):
            _act(machine.back)
        return

    st.header("Challenge Your Understanding")
    if st.button("← Back to Main Menu", key="challenge_back"):
        _act(machine.back)
    st.markdown(f"**Question {state.current_challenge_index + 1} of {len(state.challenge_items)}**")
    st.info(item.question)

    answer_key = f"challenge_answer_{item.id}"
    if not item.is_graded:
        with st.form(f"challenge_form_{item.id}"):
            answer = st.text_area("Your answer", key=answer_key, placeholder="Type your answer here...")
            if st.form_submit_button("Submit Answer", use_container_width=True):
                _act(machine.submit_challenge_answer, answer)
        return

    st.text_area("Your answer", value=item.user_answer or "", disabled=True, key=f"{answer_key}_graded")
    if item.is_correct:
        st.success(item.feedback)
    else:
        st.error(item.feedback)
    st.caption(f"Reference: {item.reference}")
    label = "View Results" if state.is_last_item else "Next Question"
    if st.button(label, key=f"challenge_next_{item.id}"):
        _act(machine.next_challenge)


def _render_results(machine: SessionStateMachine) -> None:
    state = machine.state
    correct, total = challenge_results(state)
    st.header("Challenge Results")
    st.subheader(f"You answered {correct} out of {total} questions correctly!")
    for idx, item in enumerate(state.challenge_items, start=1):
        with st.container(border=True):
            st.markdown(f"**Q{idx}: {item.question}**")
            st.write(f"Your Answer: {item.user_answer or 'Not answered'}")
            if item.is_correct:
                st.success(f"Feedback: {item.feedback}")
            else:
                st.error(f"Feedback: {item.feedback}")
            st.caption(f"Reference: {item.reference}")
    col1, col2 = st.columns(2)
    with col1:
        if st.button("Try Again", key="restart_challenge", use_container_width=True):
            _act(machine.restart_challenge)
    with col2:
        if st.button("Back to Main Menu", key="results_back", use_container_width=True):
            _act(machine.back_to_main)


_RENDERERS = {
    Mode.INITIAL: _render_welcome,
    Mode.MAIN: _render_main,
    Mode.ASK_ANYTHING: _render_ask_anything,
    Mode.CHALLENGE_ME: _render_challenge,
    Mode.CHALLENGE_RESULTS: _render_results,
}


def main() -> None:
    st.set_page_config(page_title=PAGE_TITLE, page_icon=PAGE_ICON, layout="centered")
    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    _inject_css()
    machine = _machine()
    _RENDERERS.get(machine.state.mode, _render_welcome)(machine)


if __name__ == "__main__":
    main()
