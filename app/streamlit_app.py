"""
app/streamlit_app.py

Purpose
-------
A Streamlit chat page over the district assistant:
  - loads (or builds once) the cached document corpus
  - keeps one conversation per browser session
  - lets users clear the conversation or rebuild the corpus

All question answering lives in district_assistant/chat.py; this file is
only the page around it.
"""

from pathlib import Path

import pandas as pd
import streamlit as st

from district_assistant.build_corpus import summarize_corpus
from district_assistant.chat import DistrictChat
from district_assistant.data_dictionary import RACE_CODES, SCHOOL_CODES
from district_assistant.documents import build_documents, load_aggregates
from district_assistant.store import DocumentStore


# ---------------------------------------------------------------------
# Streamlit page configuration
# ---------------------------------------------------------------------
st.set_page_config(
    page_title="District Data Assistant",
    layout="wide",
)
st.title("🎓 District Data Assistant")

DATA = Path("data")
ART = Path("artifacts")


def build_corpus():
    return build_documents(load_aggregates(DATA))


# ---------------------------------------------------------------------
# Caching helpers
# ---------------------------------------------------------------------
# The store is shared by every session; conversations are not.

@st.cache_resource
def get_store() -> DocumentStore:
    """Load the corpus once per server process, building it if the cache is empty."""
    store = DocumentStore(ART)
    store.load_or_build(build_corpus)
    return store


store = get_store()

if "chat" not in st.session_state:
    st.session_state.chat = DistrictChat(store, builder=build_corpus)
chat = st.session_state.chat


# ---------------------------------------------------------------------
# Sidebar controls
# ---------------------------------------------------------------------
st.sidebar.header("Controls")

if st.sidebar.button("Clear conversation"):
    chat.clear_memory()

if st.sidebar.button("Rebuild corpus", help="Re-read the aggregate files in data/."):
    store.rebuild(build_corpus)
    st.sidebar.success(f"Rebuilt {len(store.documents)} documents.")

st.sidebar.subheader("Corpus")
st.sidebar.dataframe(summarize_corpus(store.documents), use_container_width=True, hide_index=True)

with st.sidebar.expander("Race codes"):
    st.table(pd.DataFrame({"code": list(RACE_CODES), "description": list(RACE_CODES.values())}))

with st.sidebar.expander("School numbers"):
    st.table(pd.DataFrame({"school": list(SCHOOL_CODES), "name": list(SCHOOL_CODES.values())}))


# ---------------------------------------------------------------------
# Conversation
# ---------------------------------------------------------------------
st.caption(
    "Ask about graduation, GPA, demographics, FRP, staff or attendance. "
    'Quote a specific group to pin it down, e.g. graduation by gender "female".'
)

for entry in chat.memory:
    with st.chat_message(entry.role):
        st.write(entry.content)

prompt = st.chat_input("Ask a question about the district data")
if prompt:
    chat.generate_response(prompt)
    st.rerun()
