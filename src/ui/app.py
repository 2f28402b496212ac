"""Action Extractor -- Streamlit UI.

Paste meeting notes or an email, extract tasks, and copy or email the
suggested follow-up.
"""

from __future__ import annotations

from urllib.parse import quote

import streamlit as st

from src.extraction.cleaner import tidy
from src.ui.api_client import check_health, extract_actions

SAMPLE = """\
- Action: Integrate payments API by next Wednesday. Assigned to Ravi.
- Please prepare the onboarding doc by Friday. Alice will lead.
We will discuss metrics next meeting. John will propose KPIs."""

EMAIL_SUBJECT = "Meeting follow-up / next actions"


def format_task(task: dict) -> str:  # type: ignore[type-arg]
    """Render one task as a markdown list line."""
    line = f"**{task['title']}**"
    if task.get("assignee"):
        line += f" — {task['assignee']}"
    if task.get("due"):
        line += f" — due {task['due']}"
    if task.get("priority"):
        line += f" — {task['priority']}"
    return line


def mailto_link(body: str) -> str:
    return f"mailto:?subject={quote(EMAIL_SUBJECT)}&body={quote(body)}"


# ---------------------------------------------------------------------------
# Page config (must be first Streamlit call)
# ---------------------------------------------------------------------------
st.set_page_config(page_title="Smart Action Extractor")

st.session_state.setdefault("notes", "")
st.session_state.setdefault("result", None)

with st.sidebar:
    st.title("Smart Action Extractor")
    st.markdown("---")
    api_healthy = check_health()
    if api_healthy:
        st.markdown(":green_circle: API connected")
    else:
        st.markdown(":red_circle: API unreachable")

st.header("Smart Action Extractor")
st.write("Paste meeting notes or an email. Click **Analyze** to extract tasks and a follow-up.")

col_a, col_b = st.columns(2)
use_sample = col_a.button("Use sample notes")
if col_b.button("Fill textarea with sample"):
    st.session_state["notes"] = SAMPLE
    st.session_state["result"] = None

notes = st.text_area(
    "Notes",
    key="notes",
    height=200,
    placeholder="Paste meeting notes or email here...",
    label_visibility="collapsed",
)

analyze = st.button("Analyze", type="primary", disabled=not notes)

payload = SAMPLE if use_sample else (notes if analyze else None)
if payload:
    if not api_healthy:
        st.error("Cannot analyze: the API server is not reachable.")
    else:
        with st.spinner("Analyzing..."):
            result = extract_actions(payload)
        if result:
            # Follow-up is cleaned server-side; re-applying tidy is a no-op.
            result["followUp"] = tidy(result.get("followUp", ""))
            st.session_state["result"] = result

result = st.session_state["result"]
if result:
    st.subheader("Extracted Tasks")
    for task in result.get("tasks", []):
        st.markdown(f"- {format_task(task)}")

    st.subheader("Suggested Follow-up")
    follow_up = result.get("followUp", "")
    # st.code renders a copy-to-clipboard button
    st.code(follow_up, language=None, wrap_lines=True)
    st.link_button("Open email draft", mailto_link(follow_up))
