"""Streamlit viewer: run area discovery and speed segmentation on one log."""

from __future__ import annotations

from pathlib import Path

import streamlit as st

from residence_analyze.areas import DiscoveryParams, analyze_timeline
from residence_analyze.csv_io import load_events
from residence_analyze.errors import ResidenceAnalyzeError
from residence_analyze.midpoint import MIDPOINT_METHODS, midpoint_analysis
from residence_analyze.models import DEFAULT_INTERVAL_SECONDS, DEFAULT_TZ, MIN_STAY_SECONDS
from residence_analyze.segments import covered_seconds
from residence_analyze.speed import SpeedParams, segment_by_speed, speed_series
from residence_analyze.timeline import Timeline


def _hhmmss(seconds: float) -> str:
    s = int(round(max(0.0, seconds)))
    h = s // 3600
    m = (s % 3600) // 60
    sec = s % 60
    return f"{h:02d}:{m:02d}:{sec:02d}"


@st.cache_data(show_spinner=False)
def _load_timeline(data_csv: str, tz_name: str, delimiter: str, mtime: float) -> Timeline:
    _ = mtime  # part of cache key so updated files reload automatically
    events, _summary = load_events(data_csv, tz_name, delimiter)
    return Timeline.from_events(events)


def main() -> None:
    st.set_page_config(page_title="居住区域识别", layout="wide")
    st.title("按连接日志识别居住区域")

    with st.sidebar:
        st.subheader("数据与时区")
        tz_name = st.text_input("时区（IANA）", value=DEFAULT_TZ)
        data_csv = st.text_input("连接日志路径", value="data.csv")
        delimiter = st.selectbox("分隔符", options=["\\t", ","], index=0)

        st.subheader("区域识别")
        interval = st.number_input("interval（秒）", value=DEFAULT_INTERVAL_SECONDS, step=30.0, min_value=1.0)
        min_stay = st.number_input("min_stay_seconds（默认 1h）", value=MIN_STAY_SECONDS, step=600.0)

        with st.expander("速度切分参数（通常不用改）", expanded=False):
            speed_kmh = st.number_input("限速 km/h", value=45.0, step=5.0)
            upscale = st.number_input("距离放大系数", value=1.1, step=0.05)
            min_dwell = st.number_input("最短停留（秒）", value=600.0, step=60.0)

    p = Path(data_csv)
    if not p.exists():
        st.error(f"找不到文件：{data_csv!r}")
        return

    sep = "\t" if delimiter == "\\t" else delimiter
    try:
        timeline = _load_timeline(data_csv, tz_name, sep, p.stat().st_mtime)
        result, events = analyze_timeline(
            timeline,
            DiscoveryParams(interval_seconds=float(interval), min_stay_seconds=float(min_stay)),
        )
        speed_params = SpeedParams(
            speed_limit_mps=float(speed_kmh) / 3.6,
            distance_upscale=float(upscale),
            min_dwell_seconds=float(min_dwell),
        )
        stays = segment_by_speed(timeline.events, speed_params)
        samples = speed_series(timeline.events)
    except ResidenceAnalyzeError as exc:
        st.exception(exc)
        return

    st.subheader("汇总")
    c1, c2, c3 = st.columns(3)
    c1.metric("记录数", str(len(events)))
    c2.metric("候选居住区域", str(len(result.areas)))
    c3.metric("按速度识别的停留段", str(len(stays)))

    st.subheader("候选居住区域")
    rows: list[dict[str, object]] = []
    for method in MIDPOINT_METHODS:
        for m in midpoint_analysis(events, result.area_ids, method):
            rows.append(
                {
                    "area_id": m.area_id,
                    "method": method,
                    "latitude": round(m.latitude, 7),
                    "longitude": round(m.longitude, 7),
                    "mean_m": round(m.summary.mean_m, 1),
                    "max_m": round(m.summary.max_m, 1),
                }
            )
    st.dataframe(rows, use_container_width=True)

    with st.expander("区域明细", expanded=False):
        area_rows = [
            {
                "area_id": a.area_id,
                "tags": ", ".join(a.tags),
                "segments": len(a.segments),
                "covered": _hhmmss(covered_seconds(a.segments)),
            }
            for a in result.areas
        ]
        st.dataframe(area_rows, use_container_width=True)

    st.subheader("地图（已归入区域的记录）")
    points = [{"lat": ev.latitude, "lon": ev.longitude} for ev in events if ev.area_id > 0]
    if points:
        st.map(points)
    else:
        st.info("没有记录被归入任何区域。可以尝试调小 interval 或 min_stay_seconds。")

    st.subheader("时间 vs 区域")
    st.scatter_chart([{"time": ev.timestamp, "area_id": ev.area_id} for ev in events], x="time", y="area_id")

    st.subheader("时间 vs 速度（km/h）")
    st.line_chart([{"time": s.timestamp, "speed_kmh": s.speed_kmh} for s in samples], x="time", y="speed_kmh")

    st.subheader("按速度识别的停留段")
    st.dataframe(
        [
            {
                "start": s.start.isoformat(sep=" "),
                "end": s.end.isoformat(sep=" "),
                "duration": _hhmmss(s.duration_seconds),
                "points": s.points,
            }
            for s in stays
        ],
        use_container_width=True,
    )

    st.caption("说明：区域中心分别用球面重心（gravity）与经纬度平均（average）计算；距离为大圆距离。")


if __name__ == "__main__":
    main()
