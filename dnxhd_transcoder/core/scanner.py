"""
core.scanner
~~~~~~~~~~~~
Pure functions for turning user input (dialog picks, drag-and-drop
payloads) into input files and planning where outputs go.
No Qt and no subprocess.
"""

from __future__ import annotations

from pathlib import Path
from urllib.parse import unquote, urlparse

# Video extensions we consider as valid input files
VIDEO_EXTENSIONS: frozenset[str] = frozenset({
    ".mp4", ".mov", ".mxf", ".avi", ".mkv",
    ".m4v", ".wmv", ".flv", ".webm", ".ts",
    ".mpg", ".mpeg", ".m2t", ".m2ts", ".mts", ".dv",
})

OUTPUT_SUBDIR = "transcoded"


def file_dialog_filters() -> str:
    """Filter string for QFileDialog (Qt's ``;;`` separated syntax)."""
    common = "*.mp4 *.MP4 *.mov *.MOV"
    everything = " ".join(sorted(f"*{ext}" for ext in VIDEO_EXTENSIONS))
    return f"Videos (*.mp4, *.mov) ({common});;All videos ({everything});;All files (*)"


def is_video_file(path: Path) -> bool:
    return path.suffix.lower() in VIDEO_EXTENSIONS


# ── Drag and drop ─────────────────────────────────────────────────────────────

def parse_uri_list(text: str) -> list[Path]:
    """
    Turn a ``text/uri-list`` payload into existing file paths.

    Blank lines and ``#`` comments are skipped, ``file://`` URIs are
    percent-decoded, bare paths are accepted as-is. Anything that is not
    an existing regular file is dropped.

    Example:
        "file:///home/me/My%20Clip.mov\\r\\n"  →  [Path("/home/me/My Clip.mov")]
    """
    paths: list[Path] = []
    for line in text.splitlines():
        entry = line.strip()
        if not entry or entry.startswith("#"):
            continue

        if entry.startswith("file:"):
            parsed = urlparse(entry)
            raw = unquote(parsed.path)
        else:
            raw = unquote(entry)

        path = Path(raw)
        if path.is_file():
            paths.append(path)
    return paths


def dedupe_files(existing: list[Path], new: list[Path]) -> list[Path]:
    """*existing* followed by the members of *new* not already listed."""
    seen = {p.resolve() for p in existing}
    merged = list(existing)
    for path in new:
        key = path.resolve()
        if key not in seen:
            seen.add(key)
            merged.append(path)
    return merged


# ── Output planning ───────────────────────────────────────────────────────────

def resolve_output_dir(files: list[Path], output_dir: Path | None) -> Path:
    """
    Where a batch writes its results: ``<output_dir>/transcoded``, or
    next to the first input when no folder was chosen.
    """
    if output_dir is not None:
        base = output_dir
    elif files:
        base = files[0].parent
    else:
        base = Path(".")
    return base / OUTPUT_SUBDIR


def build_output_path(
    input_file: Path,
    output_folder: Path,
    output_extension: str,
) -> Path:
    """
    Given an input file, return the expected output path.

    Example:
        input_file       = Path("/rushes/clip001.mp4")
        output_folder    = Path("/rushes/transcoded")
        output_extension = ".mov"
        → Path("/rushes/transcoded/clip001.mov")
    """
    return output_folder / (input_file.stem + output_extension)


def plan_outputs(
    files: list[Path],
    output_folder: Path,
    output_extension: str,
) -> list[Path]:
    """
    One output path per input, in order. Inputs that share a stem
    (``a/clip.mp4`` and ``b/clip.mov``) get ``clip_1``, ``clip_2``…
    so no two jobs of a batch write the same file.
    """
    taken: set[str] = set()
    outputs: list[Path] = []
    for input_file in files:
        candidate = build_output_path(input_file, output_folder, output_extension)
        n = 0
        while candidate.name.lower() in taken:
            n += 1
            candidate = output_folder / f"{input_file.stem}_{n}{output_extension}"
        taken.add(candidate.name.lower())
        outputs.append(candidate)
    return outputs
