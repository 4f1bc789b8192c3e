"""
Content Outline Parser

Best-effort parsing of the markdown content outline written by the LLM
into {recommendedH1, h2Sections, totalEstimatedWordCount}.

Expected shape (anything else degrades gracefully to the defaults):

    ## Recommended H1
    **"Project Management Software: The Complete Guide"**

    ## H2 Sections
    ### 1. What Is Project Management Software (Estimated Word Count: 200)
    Brief description of what to cover in this section.

    Total Estimated Word Count: 2400
"""

import re
from typing import Any, Dict, List, Optional

DEFAULT_H1 = "Comprehensive Guide"
DEFAULT_SECTION_WORDS = 200
DEFAULT_TOTAL_WORDS = 2000

_SECTION_PREFIX = r"(?:#{2,}\s*(?:\d+\.\s*)?|[-*]\s+|\d+\.\s+)"
_SECTION_START = re.compile(r"^" + _SECTION_PREFIX)
_SECTION_WITH_COUNT = re.compile(
    r"^" + _SECTION_PREFIX
    + r"(.+?)\s*\((?:[^)]*estimated\s+word\s+count[:\s]*([\d,]+)[^)]*|~?([\d,]+)\s*words?)\)",
    re.IGNORECASE,
)
_SECTION_PLAIN = re.compile(r"^" + _SECTION_PREFIX + r"(.+)$")
_TOTAL_LINE = re.compile(r"^[#*\s]*total\s+estimated\s+word\s+count\**[:\s*]*([\d,]+)", re.IGNORECASE)
_QUOTED = re.compile(r"^\**\s*[\"'“](.+?)[\"'”]\s*\**$")
_BOLD = re.compile(r"^\*\*(.+?)\*\*$")

# Headings that label the outline's structure rather than a section
_STRUCTURAL_HEADINGS = {"h2 sections", "content outline", "sections", "outline"}


def _clean_h1(text: str) -> str:
    text = text.strip()
    quoted = _QUOTED.match(text)
    if quoted:
        return quoted.group(1).strip()
    bold = _BOLD.match(text)
    if bold:
        return bold.group(1).strip().strip("\"'")
    return text.strip("\"'")


def _to_int(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    try:
        return int(value.replace(",", ""))
    except ValueError:
        return None


def _parse_section_heading(line: str) -> Optional[Dict[str, Any]]:
    match = _SECTION_WITH_COUNT.match(line)
    if match:
        title = match.group(1)
        words = _to_int(match.group(2)) or _to_int(match.group(3))
    else:
        match = _SECTION_PLAIN.match(line)
        if not match:
            return None
        title, words = match.group(1), None

    title = title.strip().strip("*").strip()
    if not title or title.lower().rstrip(":") in _STRUCTURAL_HEADINGS:
        return None

    return {
        "title": title,
        "estimatedWordCount": words or DEFAULT_SECTION_WORDS,
        "description": "",
    }


def parse_content_outline(markdown: Optional[str]) -> Dict[str, Any]:
    """
    Parse an LLM-written content outline.

    Args:
        markdown: Outline text (may be empty or free-form)

    Returns:
        {"recommendedH1": str, "h2Sections": [...], "totalEstimatedWordCount": int}
    """
    lines = [line.strip() for line in (markdown or "").split("\n") if line.strip()]

    recommended_h1 = ""
    sections: List[Dict[str, Any]] = []
    current: Optional[Dict[str, Any]] = None
    stated_total: Optional[int] = None
    skip_index = -1

    for index, line in enumerate(lines):
        if index == skip_index:
            continue

        # "Recommended H1" label, with the H1 itself on the next line
        if "recommended h1" in line.lower():
            inline = re.split(r"recommended h1\**\s*:", line, flags=re.IGNORECASE)
            if len(inline) > 1 and inline[1].strip():
                recommended_h1 = _clean_h1(inline[1])
            elif index + 1 < len(lines):
                recommended_h1 = _clean_h1(lines[index + 1])
                skip_index = index + 1
            continue

        total = _TOTAL_LINE.match(line)
        if total:
            stated_total = _to_int(total.group(1))
            continue

        # Single "#" heading is an H1
        if line.startswith("#") and not line.startswith("##"):
            if not recommended_h1:
                recommended_h1 = _clean_h1(line.lstrip("#"))
            continue

        # Standalone quoted line before any section
        if not recommended_h1 and not sections and current is None and _QUOTED.match(line):
            recommended_h1 = _clean_h1(line)
            continue

        if _SECTION_START.match(line):
            section = _parse_section_heading(line)
            if section:
                if current:
                    sections.append(current)
                current = section
            continue

        if current and line != "---":
            current["description"] = f"{current['description']} {line}".strip()

    if current:
        sections.append(current)

    # Fall back to a plain first line
    if not recommended_h1 and lines:
        first = lines[0]
        if not _SECTION_START.match(first) and not _TOTAL_LINE.match(first):
            recommended_h1 = _clean_h1(first.lstrip("#"))

    if sections:
        total_words = sum(s["estimatedWordCount"] for s in sections)
    else:
        total_words = stated_total or DEFAULT_TOTAL_WORDS

    return {
        "recommendedH1": recommended_h1 or DEFAULT_H1,
        "h2Sections": sections,
        "totalEstimatedWordCount": total_words or DEFAULT_TOTAL_WORDS,
    }
