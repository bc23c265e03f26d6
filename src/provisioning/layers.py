"""``modules/layers.conf`` handling."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List

from common.io_utils import read_properties
from constants import Layout

logger = logging.getLogger(__name__)


def collect_layers_confs(packages: Iterable) -> List[Path]:
    """Return the ``modules/layers.conf`` files shipped in package content."""
    found = []
    for package in packages:
        conf = package.content_dir / Layout.MODULES / Layout.LAYERS_CONF
        if conf.is_file():
            found.append(conf)
    return found


def layer_names(conf: Path) -> List[str]:
    value = read_properties(conf).get(Layout.LAYERS, "").strip()
    return [name.strip() for name in value.split(",") if name.strip()] if value else []


def setup_layer_directories(conf: Path, staged_dir: Path) -> List[Path]:
    """Create ``modules/system/layers/<layer>`` for every layer in ``conf``."""
    layers_dir = staged_dir / Layout.MODULES / Layout.SYSTEM / Layout.LAYERS
    created = []
    for name in layer_names(conf):
        layer_dir = layers_dir / name
        if not layer_dir.exists():
            logger.debug("Creating layer directory %s", layer_dir)
            layer_dir.mkdir(parents=True)
            created.append(layer_dir)
    return created


def merge_layers_confs(confs: List[Path], staged_dir: Path) -> Path:
    """Write the union of the ``layers`` lists of ``confs`` to the staged
    ``modules/layers.conf``.

    Layer order follows first appearance. Other properties are taken from the
    confs in order, later ones winning.
    """
    merged: Dict[str, str] = {}
    layers: List[str] = []
    for conf in confs:
        merged.update(read_properties(conf))
        for name in layer_names(conf):
            if name not in layers:
                layers.append(name)
    merged[Layout.LAYERS] = ",".join(layers)
    target = staged_dir / Layout.MODULES / Layout.LAYERS_CONF
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "w", encoding="utf-8") as fh:
        for key, value in merged.items():
            fh.write(f"{key}={value}\n")
    logger.info("Merged %d layers.conf files: layers=%s", len(confs), merged[Layout.LAYERS])
    return target


def process_layers(packages: Iterable, staged_dir: Path) -> None:
    """Create layer directories and merge layers.conf when several exist."""
    if not (staged_dir / Layout.MODULES / Layout.LAYERS_CONF).exists():
        return
    confs = collect_layers_confs(packages)
    for conf in confs:
        setup_layer_directories(conf, staged_dir)
    if len(confs) < 2:
        return
    merge_layers_confs(confs, staged_dir)
