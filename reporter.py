# reporter.py
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import TypeAdapter

from models.models import RunResult

logger = logging.getLogger(__name__)

OUTPUT_PREFIX = "vivino-output-"

_result_adapter = TypeAdapter(RunResult)


def output_filename(now: Optional[datetime] = None) -> str:
    """timestamp-named file, e.g. vivino-output-2024-05-01T10-20-30-123Z.json"""
    now = now or datetime.now(timezone.utc)
    timestamp = now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"
    return f"{OUTPUT_PREFIX}{timestamp.replace(':', '-').replace('.', '-')}.json"


def result_to_dict(result: RunResult) -> dict:
    """JSON-ready document: vinos and status first, diagnostic fields only when present"""
    return _result_adapter.dump_python(result, mode="json", exclude_none=True)


def save_result(result: RunResult, output_dir: str = ".") -> Optional[Path]:
    """
    write the run result to disk.

    Failures are logged and swallowed so they never change the run's status;
    returns the written path, or None if writing failed.
    """
    path = Path(output_dir) / output_filename()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(result_to_dict(result), f, indent=2, ensure_ascii=False)
    except (OSError, TypeError, ValueError) as e:
        logger.error("Failed to write output file %s: %s", path, e)
        return None

    logger.info("Results saved to %s", path)
    return path
