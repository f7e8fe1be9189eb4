"""
Hand Rehabilitation Dashboard
Live glove readings, movement analysis and clinical assessment

Run with:
    streamlit run rehab_dashboard.py
"""

import logging
import time

import streamlit as st

from handrehab.charts import (
    ACCEL_LINES,
    ACCEL_RANGE,
    FINGER_LINES,
    FLEX_RANGE,
    FORCE_LINES,
    FORCE_RANGE,
    GYRO_LINES,
    SINGLE_FLEX_LINES,
    average_labels,
    build_flexion_chart,
    build_line_chart,
)
from handrehab.config import FINGERS, DashboardConfig, FeedSettings, GloveLayout, get_finger
from handrehab.controller import DashboardController
from handrehab.data.live import FirebaseFeedSource
from handrehab.data.source import MockFeedSource


logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

DASHBOARD_CSS = """
<style>
    .stApp {
        background: #f4f6f9;
    }

    .average-row {
        display: flex;
        gap: 20px;
        padding: 10px;
        margin-bottom: 10px;
        background-color: #f8f9fa;
        border-radius: 5px;
        flex-wrap: wrap;
    }

    .average-swatch {
        display: inline-block;
        width: 12px;
        height: 12px;
        margin-right: 8px;
        border-radius: 2px;
    }

    .movement-card {
        border: 1px solid #ddd;
        padding: 15px;
        border-radius: 5px;
        background-color: #ffffff;
        text-align: center;
        font-size: 18px;
    }

    .flag-card {
        background-color: #fff;
        padding: 15px;
        border-radius: 5px;
        margin-bottom: 10px;
    }

    .flag-description {
        font-size: 0.85rem;
        color: #7f8c8d;
    }

    .stDeployButton {display: none;}
    footer {visibility: hidden;}
</style>
"""

FLAG_DESCRIPTIONS = {
    "grasp": "Grip strength (force above threshold indicates functional grasp)",
    "arom": "Active Range of Motion (patient-initiated movement)",
    "prom": "Passive Range of Motion (therapist-assisted movement)",
    "fine_motor": "Precision control (mid-range flexion with stability)",
}


def create_feed(config: DashboardConfig):
    """Firebase feed when configured, simulated glove otherwise."""
    if config.feed.is_configured:
        return FirebaseFeedSource(config.feed)
    return MockFeedSource(layout=config.layout)


def render_averages(averages, lines):
    """Colored row of window averages above a chart"""
    items = "".join(
        f'<span><span class="average-swatch" style="background-color: {color};"></span>'
        f'<strong>{name}:</strong> {value:.2f}</span>'
        for name, value, color in average_labels(averages, lines)
    )
    st.markdown(f'<div class="average-row">{items}</div>', unsafe_allow_html=True)


def render_chart(controller, title, lines, y_range=None):
    """Averages row plus the time-series chart"""
    render_averages(controller.averages(), lines)
    st.plotly_chart(
        build_line_chart(controller.to_frame(), title, lines, y_range),
        use_container_width=True,
        key=chart_key(title),
    )


def chart_key(name):
    # Charts are redrawn every tick; keys must be unique per script run
    return f"{name}-{st.session_state.get('render_tick', 0)}"


def render_flag(title, ok, ok_text, bad_text, description, detail=""):
    color = "#27ae60" if ok else "#e74c3c"
    mark = "✅" if ok else "❌"
    text = ok_text if ok else bad_text
    st.markdown(f"""
    <div class="flag-card">
        <div style="color: {color}; margin-bottom: 5px;">
            <strong>{title}: </strong>{mark} {text} {detail}
        </div>
        <div class="flag-description">{description}</div>
    </div>
    """, unsafe_allow_html=True)


def render_clinical_assessment(controller, finger_id):
    """Posture band and the four clinical flags for one finger"""
    st.markdown("### Clinical Assessment")

    assessment = controller.assess(finger_id)
    if assessment is None:
        st.caption("No data available")
        return

    st.markdown(
        f"**Flexion Status:** <span style='color: {assessment.band.color}; font-weight: bold;'>"
        f"{assessment.label} ({assessment.flex:g} units)</span>",
        unsafe_allow_html=True,
    )

    col1, col2 = st.columns(2)
    with col1:
        render_flag("Grasp Strength", assessment.grasp, "Adequate", "Weak",
                    FLAG_DESCRIPTIONS["grasp"], f"({assessment.force:.2f}N)")
        render_flag("PROM", assessment.prom, "Achieved", "Not Achieved", FLAG_DESCRIPTIONS["prom"])
    with col2:
        render_flag("AROM", assessment.arom, "Achieved", "Not Achieved", FLAG_DESCRIPTIONS["arom"])
        render_flag("Fine Motor", assessment.fine_motor, "Present", "Impaired",
                    FLAG_DESCRIPTIONS["fine_motor"])


def render_overview(controller):
    """All-channel charts for the current layout"""
    if controller.layout == GloveLayout.SINGLE:
        render_chart(controller, "Flex Sensor Data", SINGLE_FLEX_LINES)
        render_chart(controller, "Acceleration Data", ACCEL_LINES)
        render_chart(controller, "Gyroscope Data", GYRO_LINES)

        st.markdown("### Movement Analysis")
        st.markdown(
            f'<div class="movement-card"><strong>Current Movement: </strong>'
            f'{controller.current_movement() or "Loading..."}</div>',
            unsafe_allow_html=True,
        )
    else:
        render_chart(controller, "All Finger Flexion Data", FINGER_LINES, FLEX_RANGE)
        render_chart(controller, "Force Sensor Data", FORCE_LINES, FORCE_RANGE)
        render_chart(controller, "MPU6050 Acceleration Data", ACCEL_LINES, ACCEL_RANGE)


def render_finger_page(controller, finger_id):
    """Per-finger rehabilitation view"""
    finger = get_finger(finger_id)
    st.markdown(f"## {finger.name} Finger Rehabilitation")

    frame = controller.to_frame()
    render_averages(controller.averages(), [FINGER_LINES[FINGERS.index(finger)]])
    st.plotly_chart(
        build_flexion_chart(frame, finger, controller.bands),
        use_container_width=True,
        key=chart_key(f"{finger.id}-flexion"),
    )
    render_chart(controller, "Force Sensor Data", FORCE_LINES, FORCE_RANGE)
    render_chart(controller, "MPU6050 Acceleration Data", ACCEL_LINES, ACCEL_RANGE)
    render_clinical_assessment(controller, finger_id)


def render_summary(controller):
    """Window averages and the averaged movement summary"""
    st.markdown("### Average Sensor Values")
    averages = controller.averages()
    cols = st.columns(4)
    for i, (channel, value) in enumerate(averages.items()):
        with cols[i % 4]:
            st.metric(channel.replace("_", " ").title(), f"{value:.2f}")

    st.markdown("### Medical Movement Summary")
    summary = controller.movement_summary()
    st.markdown(
        f'<div class="movement-card">{" | ".join(p or "-" for p in summary.parts())}</div>',
        unsafe_allow_html=True,
    )


class RehabDashboard:
    """Live dashboard over a DashboardController"""

    def __init__(self, config=None):
        self.config = config or DashboardConfig(feed=FeedSettings.from_env())

        if 'rehab_initialized' not in st.session_state:
            self._initialize()

    def _initialize(self):
        """Initialize session state"""
        st.session_state.rehab_initialized = True

        controller = DashboardController(self.config)
        controller.attach(create_feed(self.config))

        st.session_state.controller = controller
        st.session_state.is_running = True
        st.session_state.page = "dashboard"

    def update_data(self):
        """Pull the next payload from the feed into the controller"""
        source = st.session_state.controller.source
        if isinstance(source, FirebaseFeedSource):
            source.poll()
        elif isinstance(source, MockFeedSource):
            source.pump()

    def render_sidebar(self):
        controller = st.session_state.controller
        source = controller.source

        with st.sidebar:
            st.markdown("### Feed")
            if isinstance(source, FirebaseFeedSource):
                status = source.diagnostics["status"]
                if status == "Connected":
                    st.success(f"Firebase Connected ({source.diagnostics['latency'] * 1000:.0f} ms)")
                else:
                    st.warning(status)
            else:
                st.info("Mock Data")

            st.caption(f"Window: {len(controller.buffer)}/{controller.buffer.capacity} samples")

            pages = ["dashboard", "summary"]
            if controller.layout == GloveLayout.FIVE_FINGER:
                pages[1:1] = [f.id for f in FINGERS]
            st.session_state.page = st.radio(
                "View",
                pages,
                format_func=lambda p: get_finger(p).name + " Finger" if p not in ("dashboard", "summary") else p.title(),
            )

            if st.button("Pause" if st.session_state.is_running else "Resume", use_container_width=True):
                st.session_state.is_running = not st.session_state.is_running

    def render_page(self):
        controller = st.session_state.controller
        page = st.session_state.page

        if controller.is_loading:
            st.markdown("Loading sensor data...")
        elif page == "dashboard":
            render_overview(controller)
        elif page == "summary":
            render_summary(controller)
        else:
            render_finger_page(controller, page)

    def run(self):
        """Main app"""
        st.set_page_config(
            page_title="Hand Rehabilitation Dashboard",
            page_icon="",
            layout="wide",
        )
        st.markdown(DASHBOARD_CSS, unsafe_allow_html=True)
        st.title("Hand Rehabilitation Dashboard")

        self.render_sidebar()
        page_placeholder = st.empty()

        # Main loop
        while True:
            if st.session_state.is_running:
                self.update_data()

            st.session_state.render_tick = st.session_state.get('render_tick', 0) + 1
            with page_placeholder.container():
                self.render_page()

            time.sleep(self.config.feed.poll_interval)


if __name__ == "__main__":
    dashboard = RehabDashboard()
    dashboard.run()
