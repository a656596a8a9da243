from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

from app.config import resolve_path
from src.models.growth.twin_reference import (
    CircumferenceReferenceTable,
    DataLoadError,
    WeightReferenceTable,
    load_circumference_reference,
    load_weight_reference,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReferenceBundle:
    efw: WeightReferenceTable
    ac: CircumferenceReferenceTable


def load_reference_bundle(efw_path: str | Path, ac_path: str | Path) -> ReferenceBundle:
    """
    Load both twin reference tables. The two files are read concurrently;
    the bundle is only returned once both are parsed.
    """
    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="reference-load") as pool:
        efw_future = pool.submit(load_weight_reference, efw_path)
        ac_future = pool.submit(load_circumference_reference, ac_path)
        try:
            efw = efw_future.result()
            ac = ac_future.result()
        except DataLoadError:
            logger.exception("Twin reference tables could not be loaded")
            raise
    return ReferenceBundle(efw=efw, ac=ac)


def load_reference_bundle_from_config(cfg: Dict[str, Any]) -> ReferenceBundle:
    paths = cfg.get("paths") or {}
    try:
        efw_path = paths["efw_reference_csv"]
        ac_path = paths["ac_reference_csv"]
    except KeyError as e:
        raise DataLoadError(f"config 'paths' is missing {e.args[0]}") from e
    return load_reference_bundle(resolve_path(efw_path), resolve_path(ac_path))
