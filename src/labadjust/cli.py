from __future__ import annotations
import argparse
import logging
import os
from dataclasses import replace
from typing import List, Optional

import cv2

from .document import Document, Layer
from .helpers import PipelineConfig, ensure_dir, list_images, load_image_bgr, save_image_rgb
from .log import logger
from .pipeline import LabAdjuster
from .scale import REFERENCE_PARAMETERS
from .viz import Visualizer


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Resolution-independent Lab channel adjustments")
    g_io = p.add_argument_group("I/O")
    g_io.add_argument("--image", type=str, help="Path to a single image")
    g_io.add_argument("--dir", type=str, help="Path to a directory of images")
    g_io.add_argument("--save_dir", type=str, default=None, help="Output folder")
    g_io.add_argument("--show", action="store_true", help="Display before/after figures")

    g_doc = p.add_argument_group("Document")
    g_doc.add_argument("--resolution", type=float, default=72.0, help="Pixels per inch")
    g_doc.add_argument("--reference_size", type=float, default=REFERENCE_PARAMETERS.reference_size,
                       help="Longest side (px) the filter values are tuned for")

    p.add_argument("--verbose", action="store_true", help="Log every pipeline step")
    return p


def _process_one(path: str, cfg: PipelineConfig, adjuster: LabAdjuster,
                 resolution: float, viz: Visualizer) -> bool:
    # load & convert to RGB
    try:
        img_bgr = load_image_bgr(path)
    except OSError as e:
        logger.error("Skipping %s: %s", path, e)
        return False
    img_rgb = cv2.cvtColor(img_bgr, cv2.COLOR_BGR2RGB)
    base = os.path.splitext(os.path.basename(path))[0]
    doc = Document([Layer("Background", img_rgb)], resolution=resolution, name=base)
    source = doc.active_layer

    outcome = adjuster.run(doc)
    if not outcome.succeeded:
        return False

    if cfg.show:
        viz.compare_layers(source, outcome.layer)

    if cfg.save_dir:
        ensure_dir(cfg.save_dir)
        out_path = os.path.join(cfg.save_dir, f"{base}_adjusted.png")
        save_image_rgb(out_path, outcome.layer.to_rgb8())
        logger.info("Saved %s", out_path)
    return True


def main(argv: Optional[List[str]] = None) -> None:
    args = build_argparser().parse_args(argv)
    if args.verbose:
        logger.setLevel(logging.DEBUG)

    cfg = PipelineConfig(
        reference=replace(REFERENCE_PARAMETERS, reference_size=args.reference_size),
        save_dir=args.save_dir,
        show=args.show,
    )
    adjuster = LabAdjuster(config=cfg)
    viz = Visualizer()

    if args.image:
        paths = [args.image]
    elif args.dir:
        paths = list_images(args.dir)
    else:
        raise SystemExit("Provide either --image or --dir")

    failed = [p for p in paths if not _process_one(p, cfg, adjuster, args.resolution, viz)]
    if failed:
        raise SystemExit(f"{len(failed)} of {len(paths)} image(s) failed")


if __name__ == "__main__":
    main()
