"""Command-line interface for residence_analyze.

Run:
    python -m residence_analyze inspect --csv data.csv
    python -m residence_analyze run --csv data.csv --interval 180 --out-dir out
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from residence_analyze.areas import DiscoveryParams, DiscoveryResult, analyze_timeline
from residence_analyze.csv_io import DEFAULT_DELIMITER, load_events
from residence_analyze.errors import InvalidArgumentError, ResidenceAnalyzeError
from residence_analyze.inspect import inspect_timeline
from residence_analyze.midpoint import (
    DEFAULT_CDF_SAMPLES,
    MIDPOINT_METHODS,
    MINDIST_LABEL,
    AreaMidpoint,
    midpoint_analysis,
    summarize_area,
)
from residence_analyze.models import DEFAULT_INTERVAL_SECONDS, DEFAULT_TZ, MIN_STAY_SECONDS, Event
from residence_analyze.report import (
    TIME_VS_AREA_CSV,
    TIME_VS_SPEED_CSV,
    area_map_filename,
    cdf_filename,
    write_area_geojson,
    write_cdf_csv,
    write_mindist_inputs,
    write_speed_stays_geojson,
    write_time_vs_area_csv,
    write_time_vs_speed_csv,
)
from residence_analyze.speed import SpeedParams, segment_by_speed, speed_series
from residence_analyze.timeline import Timeline

logger = logging.getLogger(__name__)


def _area_float(text: str) -> tuple[int, float]:
    """Parse ``AREA=VALUE``."""

    try:
        area_s, value_s = text.split("=", 1)
        return int(area_s), float(value_s)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"格式应为 AREA=METERS，例如 1=700：{text!r}") from exc


def _area_center(text: str) -> tuple[int, tuple[float, float]]:
    """Parse ``AREA=LAT,LON``."""

    try:
        area_s, coords = text.split("=", 1)
        lat_s, lon_s = coords.split(",", 1)
        return int(area_s), (float(lat_s), float(lon_s))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"格式应为 AREA=LAT,LON，例如 1=25.045682,121.512526：{text!r}") from exc


def _load_timeline(args: argparse.Namespace) -> Timeline:
    events, summary = load_events(args.csv, args.tz, args.delimiter)
    logger.info("读取 %s 行，解析 %s 行，跳过 %s 行", summary.rows_total, summary.rows_parsed, summary.rows_skipped)
    return Timeline.from_events(events)


def _out_dir(args: argparse.Namespace) -> Path:
    d = Path(args.out_dir)
    d.mkdir(parents=True, exist_ok=True)
    return d


def _print_midpoint(m: AreaMidpoint) -> None:
    s = m.summary
    print(f"区域 {m.area_id} [{m.method}] midpoint={m.latitude:.10f}, {m.longitude:.10f}")
    print(f"\t平均距离={s.mean_m:.1f}m 最大距离={s.max_m:.1f}m 最小距离={s.min_m:.1f}m（n={s.count}）")


def _cmd_inspect(args: argparse.Namespace) -> int:
    events, summary = load_events(args.csv, args.tz, args.delimiter)
    print("### 表头")
    print(", ".join(summary.header))
    print()

    print("### 行数")
    print(f"total_rows={summary.rows_total}, parsed={summary.rows_parsed}, skipped={summary.rows_skipped}")
    print()

    res = inspect_timeline(Timeline.from_events(events), top=args.top)
    print("### 时间范围（本地时区）")
    print(f"start={res.min_time.isoformat(sep=' ')}, end={res.max_time.isoformat(sep=' ')}")
    print()

    if res.delta is not None:
        print("### 采样间隔（秒）")
        print(
            f"count={res.delta.count}, min={res.delta.min_s:.3f}, median={res.delta.median_s:.3f}, "
            f"p95={res.delta.p95_s:.3f}, max={res.delta.max_s:.3f}"
        )
        print()

    print("### 经纬度范围（粗略）")
    print(f"lat=[{res.min_lat}, {res.max_lat}], lon=[{res.min_lon}, {res.max_lon}]")
    print()

    print("### 重复时间戳")
    print(res.duplicate_times)
    print()

    print(f"### 位置标签（共 {res.tags} 个，连接数最多的 {len(res.top_tags)} 个）")
    for rank, (tag, count) in enumerate(res.top_tags, start=1):
        print(f"Top{rank}: {tag}, num={count}")
    return 0


def _cmd_cell(args: argparse.Namespace) -> int:
    timeline = _load_timeline(args)
    print(f"{args.tag}: num_connections={timeline.num_connections(args.tag)}")
    for seg in timeline.time_segments(args.tag, args.interval):
        print(f"{seg.start.strftime('%Y-%m-%d %H:%M:%S')}-to-{seg.end.strftime('%H:%M:%S')}")
    return 0


def _run_areas(args: argparse.Namespace, timeline: Timeline, out_dir: Path) -> DiscoveryResult:
    params = DiscoveryParams(interval_seconds=args.interval, min_stay_seconds=args.min_stay_seconds)
    result, events = analyze_timeline(timeline, params)
    mindist = dict(args.mindist or [])
    for area_id in mindist:
        if area_id not in result.area_ids:
            raise InvalidArgumentError(f"--mindist 指定的区域不存在：{area_id}")
    write_time_vs_area_csv(events, out_dir / TIME_VS_AREA_CSV)

    print(f"识别到候选居住区域 {len(result.areas)} 个（interval={args.interval}s）")
    for area in result.areas:
        print(f"区域 {area.area_id}: tags={','.join(area.tags)}, segments={len(area.segments)}")

    cdf_max = dict(args.cdf_max or [])
    for method in MIDPOINT_METHODS:
        for m in midpoint_analysis(events, result.area_ids, method, samples=args.cdf_samples, max_bound_m=cdf_max):
            write_cdf_csv(m.cdf, out_dir / cdf_filename(method, m.area_id))
            _print_midpoint(m)

    for area_id, center in mindist.items():
        m = summarize_area(
            events,
            area_id,
            MINDIST_LABEL,
            center=center,
            samples=args.cdf_samples,
            max_bound_m=cdf_max.get(area_id),
        )
        write_cdf_csv(m.cdf, out_dir / cdf_filename(MINDIST_LABEL, area_id))
        _print_midpoint(m)

    for area_id in result.area_ids:
        write_area_geojson(events, area_id, out_dir / area_map_filename(area_id))
        write_mindist_inputs(events, area_id, out_dir)

    print(f"已导出：{out_dir}（{TIME_VS_AREA_CSV}、*-area-*.csv、map-by-area-*.json、area-*-lon/lat.txt）")
    return result


def _run_speed(args: argparse.Namespace, events: list[Event], out_dir: Path) -> int:
    params = SpeedParams(
        speed_limit_mps=args.speed_limit_kmh / 3.6,
        distance_upscale=args.upscale,
        min_dwell_seconds=args.min_dwell_seconds,
    )
    write_time_vs_speed_csv(speed_series(events), out_dir / TIME_VS_SPEED_CSV)
    stays = segment_by_speed(events, params)
    paths = write_speed_stays_geojson(events, stays, out_dir)
    print(f"按速度识别到停留 {len(stays)} 段（限速={args.speed_limit_kmh}km/h, 最短停留={args.min_dwell_seconds}s）")
    for stay, path in zip(stays, paths):
        print(f"{stay.start.isoformat(sep=' ')} -> {stay.end.isoformat(sep=' ')} points={stay.points} -> {path.name}")
    print(f"已导出：{out_dir / TIME_VS_SPEED_CSV}")
    return len(stays)


def _cmd_areas(args: argparse.Namespace) -> int:
    _run_areas(args, _load_timeline(args), _out_dir(args))
    return 0


def _cmd_speed(args: argparse.Namespace) -> int:
    _run_speed(args, _load_timeline(args).events, _out_dir(args))
    return 0


def _cmd_run(args: argparse.Namespace) -> int:
    timeline = _load_timeline(args)
    out_dir = _out_dir(args)
    _run_areas(args, timeline, out_dir)
    print()
    _run_speed(args, timeline.events, out_dir)
    return 0


def _add_input_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--csv", type=str, default="data.csv", help="输入连接日志路径（首行为表头）")
    p.add_argument("--tz", type=str, default=DEFAULT_TZ, help=f"时区（IANA），默认 {DEFAULT_TZ}")
    p.add_argument("--delimiter", type=str, default=DEFAULT_DELIMITER, help="字段分隔符，默认制表符")


def _add_area_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--interval",
        type=float,
        default=DEFAULT_INTERVAL_SECONDS,
        help="时间段切分容差（秒），同时作为每段的估计停留时长",
    )
    p.add_argument(
        "--min-stay-seconds",
        type=float,
        default=MIN_STAY_SECONDS,
        help="估计停留超过该值的位置标签才算居住区域（默认 1 小时）",
    )
    p.add_argument("--cdf-samples", type=int, default=DEFAULT_CDF_SAMPLES, help="CDF 分桶数")
    p.add_argument(
        "--cdf-max",
        type=_area_float,
        action="append",
        default=None,
        metavar="AREA=METERS",
        help="指定某区域 CDF 的距离上界（米），可重复；便于多种算法同轴对比",
    )
    p.add_argument(
        "--mindist",
        type=_area_center,
        action="append",
        default=None,
        metavar="AREA=LAT,LON",
        help="外部计算得到的最小距离中心点（例如 geomidpoint.com），可重复",
    )


def _add_speed_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--speed-limit-kmh", type=float, default=45.0, help="超过该速度视为移动（km/h）")
    p.add_argument("--upscale", type=float, default=1.1, help="直线距离放大系数（补偿实际路径更长）")
    p.add_argument("--min-dwell-seconds", type=float, default=600.0, help="过滤短于该时长的停留段")


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""

    p = argparse.ArgumentParser(prog="residence_analyze")
    p.add_argument("-v", "--verbose", action="count", default=0, help="输出日志（-v 信息，-vv 调试）")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_ins = sub.add_parser("inspect", help="查看日志的行数/时间范围/采样间隔/位置标签分布")
    _add_input_args(p_ins)
    p_ins.add_argument("--top", type=int, default=10, help="显示连接数最多的前 N 个标签")
    p_ins.set_defaults(func=_cmd_inspect)

    p_cell = sub.add_parser("cell", help="输出单个位置标签的连接数与时间段")
    _add_input_args(p_cell)
    p_cell.add_argument("--tag", type=str, required=True, help="位置标签，例如 CELL_133")
    p_cell.add_argument("--interval", type=float, default=DEFAULT_INTERVAL_SECONDS, help="时间段切分容差（秒）")
    p_cell.set_defaults(func=_cmd_cell)

    p_area = sub.add_parser("areas", help="按连接数最多的位置标签识别居住区域并计算中心点")
    _add_input_args(p_area)
    _add_area_args(p_area)
    p_area.add_argument("--out-dir", type=str, default=".", help="输出目录")
    p_area.set_defaults(func=_cmd_areas)

    p_speed = sub.add_parser("speed", help="按移动速度切分轨迹并导出停留段")
    _add_input_args(p_speed)
    _add_speed_args(p_speed)
    p_speed.add_argument("--out-dir", type=str, default=".", help="输出目录")
    p_speed.set_defaults(func=_cmd_speed)

    p_run = sub.add_parser("run", help="依次执行 areas 与 speed")
    _add_input_args(p_run)
    _add_area_args(p_run)
    _add_speed_args(p_run)
    p_run.add_argument("--out-dir", type=str, default=".", help="输出目录")
    p_run.set_defaults(func=_cmd_run)

    return p


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint."""

    parser = build_parser()
    args = parser.parse_args(argv)
    level = logging.WARNING if args.verbose == 0 else logging.INFO if args.verbose == 1 else logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    try:
        return int(args.func(args))
    except ResidenceAnalyzeError as exc:
        logger.error("分析中止：%s", exc)
        print(f"错误：{exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
