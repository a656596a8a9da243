import streamlit as st

from ui_kit import growth_figure, set_page

from app.config import CalculatorSettings, configure_logging, load_config
from app.schemas.twin import ScanInput, ScanResult, TwinMeasurement
from app.services.chart_series import curves_frame, percentile_curves, twin_trajectories
from app.services.reference_store import ReferenceBundle, load_reference_bundle_from_config
from app.services.twin_service import all_chart_points, evaluate_scans
from app.utils.gestational_age import clamp_days, clamp_weeks
from src.models.growth.discordancy import format_percent
from src.models.growth.twin_reference import DataLoadError


set_page()


@st.cache_resource
def get_config() -> dict:
    cfg = load_config()
    configure_logging((cfg.get("logging") or {}).get("level", "INFO"))
    return cfg


@st.cache_resource(show_spinner="Loading twin reference tables...")
def get_references() -> ReferenceBundle:
    return load_reference_bundle_from_config(get_config())


cfg = get_config()
settings = CalculatorSettings.from_config(cfg)

st.title("Twin Growth Percentile Calculator")
st.caption("EFW and AC percentiles against twin reference charts, with inter-twin discordancy.")

try:
    refs = get_references()
except DataLoadError as e:
    st.error(f"Reference data not loaded: {e}")
    st.stop()

if "scan_ids" not in st.session_state:
    st.session_state["scan_ids"] = [0]
    st.session_state["next_scan_id"] = 1


# -----------------------
# Helpers
# -----------------------
def add_scan() -> None:
    st.session_state["scan_ids"].append(st.session_state["next_scan_id"])
    st.session_state["next_scan_id"] += 1


def remove_scan(scan_id: int) -> None:
    ids = st.session_state["scan_ids"]
    if len(ids) > 1 and scan_id in ids:
        ids.remove(scan_id)


def twin_card(scan_id: int, twin: int) -> TwinMeasurement:
    st.markdown(f"**Twin {twin}**")
    efw = st.number_input(
        "EFW (g)", min_value=0.0, max_value=6000.0, value=None, step=10.0, key=f"efw_{scan_id}_{twin}"
    )
    ac = st.number_input(
        "AC (mm)", min_value=0.0, max_value=500.0, value=None, step=1.0, key=f"ac_{scan_id}_{twin}"
    )
    return TwinMeasurement(twin=twin, efw_g=efw, ac_mm=ac)


def show_twin_result(result: ScanResult, twin: int) -> None:
    tr = next((t for t in result.twins if t.twin == twin), None)
    m1, m2 = st.columns(2)
    m1.metric("EFW percentile", format_percent(tr.efw_percentile if tr else None) or "–")
    m2.metric("AC percentile", format_percent(tr.ac_percentile if tr else None) or "–")


def scan_block(scan_id: int, number: int, removable: bool) -> tuple[ScanInput, tuple]:
    box = st.container(border=True)
    with box:
        head, rm = st.columns([6, 1])
        head.markdown(f"### Scan {number}")
        if removable:
            rm.button("Remove", key=f"remove_{scan_id}", on_click=remove_scan, args=(scan_id,))

        g1, g2 = st.columns(2)
        weeks = g1.number_input(
            "GA weeks",
            min_value=settings.min_weeks,
            max_value=settings.max_weeks,
            value=None,
            step=1,
            key=f"ga_weeks_{scan_id}",
        )
        days = g2.number_input(
            "GA days", min_value=0, max_value=settings.max_days, value=None, step=1, key=f"ga_days_{scan_id}"
        )

        c1, c2 = st.columns(2)
        with c1:
            t1 = twin_card(scan_id, 1)
        with c2:
            t2 = twin_card(scan_id, 2)

        scan = ScanInput(
            ga_weeks=clamp_weeks(weeks, settings.min_weeks, settings.max_weeks),
            ga_days=clamp_days(days, settings.max_days),
            twins=[t1, t2],
        )
    return scan, (box, c1, c2)


def show_scan_result(result: ScanResult, slots: tuple) -> None:
    box, c1, c2 = slots
    with c1:
        show_twin_result(result, 1)
    with c2:
        show_twin_result(result, 2)
    with box:
        st.metric("Discordancy", format_percent(result.discordancy_pct) or "–")


# -----------------------
# Layout
# -----------------------
left, right = st.columns([1.0, 1.3], gap="large")

with left:
    ids = list(st.session_state["scan_ids"])
    blocks = [scan_block(sid, i + 1, removable=len(ids) > 1) for i, sid in enumerate(ids)]
    results = evaluate_scans(refs, [scan for scan, _ in blocks], settings)
    for (_, slots), result in zip(blocks, results):
        show_scan_result(result, slots)
    st.button("Add measurement", on_click=add_scan, use_container_width=True)

with right:
    curves = percentile_curves(refs.efw, settings.displayed_percentiles)
    trajectories = twin_trajectories(all_chart_points(results))
    st.plotly_chart(growth_figure(curves, trajectories, settings), use_container_width=True)
    with st.expander("Reference curves"):
        st.dataframe(curves_frame(curves), hide_index=True, use_container_width=True)
