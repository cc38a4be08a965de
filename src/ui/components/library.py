"""
Library component: grid of stored recordings.

Each card plays the recording from the server, links to it for download
under its original filename, and offers a delete button.
"""

import html

import streamlit as st

from src.core.models import RecordingAsset
from src.ui.runtime import Runtime

_COLUMNS = 3


def _render_card(runtime: Runtime, asset: RecordingAsset) -> None:
    library = runtime.context.library
    with st.container(border=True):
        st.video(library.playback_url(asset))
        col_download, col_delete = st.columns(2)
        with col_download:
            url = html.escape(library.download_url(asset), quote=True)
            name = html.escape(asset.filename, quote=True)
            st.markdown(
                f'<a href="{url}" download="{name}">⬇ Download</a>',
                unsafe_allow_html=True,
            )
        with col_delete:
            if st.button("❌ Delete", key=f"delete-{asset.id}"):
                runtime.loop.run(library.delete_recording(asset.id))
                st.rerun()


def render_library(runtime: Runtime) -> None:
    """Render every recording currently held by the library store."""
    recordings = runtime.context.library.recordings
    if not recordings:
        return

    st.subheader("📂 Recordings")
    columns = st.columns(_COLUMNS)
    for index, asset in enumerate(recordings):
        with columns[index % _COLUMNS]:
            _render_card(runtime, asset)
