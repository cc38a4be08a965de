"""
Recorder component: timer display and Start/Stop control.

States: idle -> active -> idle (upload runs in the background)
"""

import logging

import streamlit as st

from src.core.utils import format_time
from src.ui.runtime import Runtime

logger = logging.getLogger(__name__)


@st.fragment(run_every=1)
def render_recorder(runtime: Runtime) -> None:
    """Render the elapsed-time counter and the Start/Stop button.

    Re-runs every second while mounted so the counter follows the
    controller's ticks. When a background upload finishes, the whole page
    is rerun so the recordings grid picks up the refreshed list.
    """
    controller = runtime.context.controller

    st.markdown(
        f"## ⏱ `{controller.formatted_time}` / `{format_time(controller.max_seconds)}`"
    )

    if controller.is_recording:
        if st.button("Stop Recording", type="secondary", key="stop-recording"):
            runtime.loop.call(controller.stop)
            st.rerun()
    else:
        if st.button(
            "Start Recording",
            type="primary",
            key="start-recording",
            disabled=controller.finalizing,
        ):
            result = runtime.loop.run(controller.start())
            if not result.ok:
                logger.debug("Start request did not begin a session: %s", result.message)
            st.rerun()

    finalizing = controller.finalizing
    if finalizing:
        st.caption("Uploading recording...")

    was_finalizing = st.session_state.get("_was_finalizing", False)
    st.session_state["_was_finalizing"] = finalizing
    if was_finalizing and not finalizing:
        st.rerun(scope="app")
