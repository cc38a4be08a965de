"""
ScreenVault Streamlit UI, main entry point.

Run with: ``streamlit run src/ui/app.py``
"""

# ---------------------------------------------------------------------------
# Ensure project root is on sys.path so ``from src.xxx`` imports work.
# Streamlit replaces sys.path[0] with the script directory (src/ui/),
# which removes the project root needed for absolute ``src.*`` imports.
# ---------------------------------------------------------------------------
import sys  # noqa: E402
from pathlib import Path  # noqa: E402

_project_root = str(Path(__file__).resolve().parent.parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

import streamlit as st  # noqa: E402

from src.ui.components.library import render_library  # noqa: E402
from src.ui.components.recorder import render_recorder  # noqa: E402
from src.ui.runtime import get_runtime  # noqa: E402

# ---------------------------------------------------------------------------
# Page config (must be first Streamlit call)
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="ScreenVault",
    page_icon="\U0001f3a5",
    layout="wide",
)

runtime = get_runtime()

# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------
with st.sidebar:
    st.title("\U0001f3a5 ScreenVault")
    st.caption("Record your screen, keep it on your server")
    st.divider()
    st.caption(f"Server: {runtime.context.client.base_url}")
    st.caption(f"Recordings loaded: {len(runtime.context.library.recordings)}")
    if st.button("Refresh list", use_container_width=True):
        runtime.loop.run(runtime.context.library.list_recordings())
        st.rerun()

# ---------------------------------------------------------------------------
# Main page
# ---------------------------------------------------------------------------
st.title("\U0001f3a5 Screen Recorder")
render_recorder(runtime)
st.divider()
render_library(runtime)
