"""CLI entry point that renders the station traffic map for a time of day."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Iterable, List, Sequence

import pandas as pd
from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from stationflow.catalog.dataset_loader import TrafficDatasets, load_datasets
from stationflow.traffic.time_window import MINUTES_PER_DAY, TimeSelection

from .map_config import TrafficMapConfig
from .pydeck_render_layer import PydeckRenderLayer
from .render_payload import RenderPayload
from .traffic_map_controller import TrafficMapController

logger = logging.getLogger(__name__)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--config",
        default=None,
        help="Optional YAML file with window, radius ranges, data sources, and map view.",
    )
    parser.add_argument(
        "--stations",
        default=None,
        help="Station feed JSON (path or URL). Overrides stations_source from the config.",
    )
    parser.add_argument(
        "--trips",
        default=None,
        help="Trip log CSV (path or URL). Overrides trips_source from the config.",
    )
    parser.add_argument(
        "--minute",
        default="-1",
        help="Minute of day (0-1439), HH:MM, or -1 for any time.",
    )
    parser.add_argument(
        "--window-minutes",
        type=int,
        default=None,
        help="Half-width of the time window in minutes (defaults to the config value).",
    )
    parser.add_argument(
        "--sweep-step",
        type=int,
        default=None,
        help="Evaluate every N-th minute of the day and write all passes to --output-csv.",
    )
    parser.add_argument("--output-html", default=None, help="Destination HTML file for the map.")
    parser.add_argument("--output-csv", default=None, help="Destination CSV for marker values.")
    parser.add_argument(
        "--top",
        type=int,
        default=10,
        help="Number of busiest stations to print in the summary table (0 disables it).",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Verbosity for the CLI logger.",
    )
    return parser.parse_args(argv)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(message)s",
    )


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    configure_logging(args.log_level)

    config = TrafficMapConfig.from_yaml(args.config) if args.config else TrafficMapConfig()
    if args.window_minutes is not None:
        config.window_minutes = args.window_minutes
        if config.window_minutes < 0:
            raise SystemExit("--window-minutes must be non-negative")
    if args.sweep_step is not None and args.sweep_step <= 0:
        raise SystemExit("--sweep-step must be positive")
    stations_source = args.stations or config.stations_source
    trips_source = args.trips or config.trips_source

    try:
        selection = TimeSelection.parse(args.minute)
    except (TypeError, ValueError) as exc:
        raise SystemExit(str(exc)) from exc

    logging.info("Loading stations from %s and trips from %s", stations_source, trips_source)
    try:
        datasets = load_datasets(stations_source, trips_source)
    except (FileNotFoundError, ValueError) as exc:
        raise SystemExit(str(exc)) from exc

    render_layer = PydeckRenderLayer(config, output_html=args.output_html) if args.output_html else None
    controller = TrafficMapController(
        datasets.catalog,
        datasets.trips,
        config=config,
        render_layer=render_layer,
    )
    payload = controller.on_selection_change(selection)

    if args.sweep_step:
        frame = _sweep_day(datasets, config, args.sweep_step)
    else:
        frame = _payload_frame(payload)
    if args.output_csv:
        _write_csv(args.output_csv, frame)
        logging.info("Wrote %d marker rows to %s", len(frame), args.output_csv)

    if args.top > 0:
        _print_summary(payload, args.top)


def _payload_frame(payload: RenderPayload) -> pd.DataFrame:
    df = payload.to_dataframe()
    df.insert(0, "minute", payload.selection.minute)
    return df


def _sweep_day(datasets: TrafficDatasets, config: TrafficMapConfig, step: int) -> pd.DataFrame:
    """Evaluate the unfiltered view plus every ``step``-th minute of the day."""
    minutes: List[int] = [-1, *range(0, MINUTES_PER_DAY, step)]
    # The sweep bypasses the render layer; only the requested selection is drawn.
    sweeper = TrafficMapController(datasets.catalog, datasets.trips, config=config)

    progress_console = Console(stderr=True)
    progress = Progress(
        SpinnerColumn(),
        TextColumn("{task.description}"),
        BarColumn(bar_width=None),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=progress_console,
        transient=True,
        disable=not progress_console.is_terminal,
    )
    frames: List[pd.DataFrame] = []
    with progress:
        task_id = progress.add_task(f"Sweeping {len(minutes)} selections", total=len(minutes))
        for minute in _iter_with_progress(minutes, progress, task_id):
            frames.append(_payload_frame(sweeper.on_selection_change(minute)))
    return pd.concat(frames, ignore_index=True)


def _iter_with_progress(items: Iterable[int], progress: Progress, task_id) -> Iterable[int]:
    for item in items:
        yield item
        progress.advance(task_id)


def _write_csv(path: str | Path, dataframe: pd.DataFrame) -> None:
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    dataframe.to_csv(output_path, index=False)


def _print_summary(payload: RenderPayload, top_n: int) -> None:
    busiest = sorted(payload.markers, key=lambda marker: marker.total_traffic, reverse=True)[:top_n]
    table = Table(title=f"Busiest stations {payload.selection.label}")
    table.add_column("Station")
    table.add_column("Total", justify="right")
    table.add_column("Departures", justify="right")
    table.add_column("Arrivals", justify="right")
    table.add_column("Flow", justify="right")
    table.add_column("Radius", justify="right")
    for marker in busiest:
        table.add_row(
            marker.name or marker.id,
            str(marker.total_traffic),
            str(marker.departures),
            str(marker.arrivals),
            str(marker.flow_level),
            f"{marker.radius:.1f}",
        )
    Console().print(table)


if __name__ == "__main__":
    main()
