from collections.abc import Iterable
from pathlib import Path

from protodata import log
from protodata.exporters.datafiles import Artifact

FILE_MODE = 0o644


def write_artifacts(artifacts: Iterable[Artifact], output_dir: Path) -> list[Path]:
    """
    Write artifacts below the output directory, replacing existing files.

    Args:
        artifacts: Generated artifacts with paths relative to the output directory
        output_dir: Directory the artifact paths are resolved against

    Returns:
        The written file paths
    """
    written: list[Path] = []
    for artifact in artifacts:
        path = output_dir / artifact.path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(artifact.content, encoding="utf-8")
            path.chmod(FILE_MODE)
        except OSError as e:
            log.error(f"Failed to write {path}: {e}")
            raise
        written.append(path)

    log.info(f"Wrote {len(written)} file(s) to {output_dir}")
    return written
