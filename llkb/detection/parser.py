"""
Test-step parser — turns test source text into CodeFragments.

Works on text the caller has already read; locating and reading files is the
caller's job.
"""

import logging
import posixpath
import re
from typing import List

from llkb.models.detection import CodeFragment

logger = logging.getLogger(__name__)

TEST_STEP_REGEX = re.compile(
    r"(?:await\s+)?test\.step\s*\(\s*(['\"`])(.+?)\1\s*,\s*async\s*\([^)]*\)\s*=>\s*\{([\s\S]*?)\}\s*\)"
)
JOURNEY_ID_REGEX = re.compile(r"(?:JRN|jrn)[-_]?(\d+)", re.I)

_LINE_COMMENT = re.compile(r"//.*$", re.M)
_BLOCK_COMMENT = re.compile(r"/\*[\s\S]*?\*/")
_NON_ID_CHARS = re.compile(r"[^A-Z0-9]")

TEST_FILE_MARKERS = (".spec.", ".test.", ".e2e.")


def _basename(file_path: str) -> str:
    return posixpath.basename(file_path.replace("\\", "/"))


def is_test_file(file_path: str) -> bool:
    name = _basename(file_path)
    return any(marker in name for marker in TEST_FILE_MARKERS)


def extract_journey_id(file_path: str, content: str) -> str:
    """JRN-#### from the file name, then the content, else derived from the name."""
    name = _basename(file_path)

    match = JOURNEY_ID_REGEX.search(name) or JOURNEY_ID_REGEX.search(content)
    if match:
        return f"JRN-{match.group(1).zfill(4)}"

    stem = posixpath.splitext(name)[0]
    return f"JRN-{_NON_ID_CHARS.sub('-', stem.upper())[:20]}"


def parse_test_steps(file_path: str, content: str) -> List[CodeFragment]:
    """Extract every test.step body that holds more than comments."""
    journey_id = extract_journey_id(file_path, content)
    fragments = []

    for match in TEST_STEP_REGEX.finditer(content):
        step_name = match.group(2)
        step_code = match.group(3)
        if not step_name or not step_code:
            continue

        code = step_code.strip()
        without_comments = _BLOCK_COMMENT.sub("", _LINE_COMMENT.sub("", code)).strip()
        if not without_comments:
            continue

        line_start = content.count("\n", 0, match.start()) + 1
        line_end = line_start + match.group(0).count("\n")
        fragments.append(CodeFragment(
            file=file_path,
            journey_id=journey_id,
            step_name=step_name,
            code=code,
            line_start=line_start,
            line_end=line_end,
        ))

    logger.debug(f"Parsed {len(fragments)} test steps from {file_path} ({journey_id})")
    return fragments
