from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from trackclassify.config import EngineConfig
from trackclassify.pipeline.video_pipeline import VideoPipeline, VideoPipelineConfig
from trackclassify.utils.config import load_yaml, resolve_path
from trackclassify.utils.logging import setup_logging


def main() -> None:
    ap = argparse.ArgumentParser(description="Track people and objects in a video and emit activity events")
    ap.add_argument("--engine", default="configs/engine.yaml", help="Engine thresholds YAML")
    ap.add_argument("--pipeline", required=True, help="Pipeline YAML (source, detection, output)")
    ap.add_argument("--log-level", default="INFO")
    ap.add_argument("--log-file", default=None)
    ap.add_argument("--print-report", action="store_true", help="Print the summary report on exit")
    args = ap.parse_args()

    base_dir = os.getcwd()
    setup_logging(level=args.log_level, log_file=args.log_file)

    engine_cfg = EngineConfig.from_dict(load_yaml(resolve_path(args.engine, base_dir)))
    pipeline_cfg = VideoPipelineConfig.from_dict(load_yaml(resolve_path(args.pipeline, base_dir)), base_dir=base_dir)
    report = VideoPipeline(engine_cfg, pipeline_cfg).run()
    if args.print_report:
        sys.stdout.write(report.render_text())


if __name__ == "__main__":
    main()
