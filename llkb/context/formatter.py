"""Render a RelevantContext as the markdown block injected into prompts."""

import math
import re
from typing import Dict, List

from llkb.models.context import RelevantContext
from llkb.models.journey import JourneyContext

DESCRIPTION_PREVIEW = 50
PATTERN_PREVIEW = 100

_TS_SUFFIX = re.compile(r"\.ts$")
_RELATIVE_PREFIX = re.compile(r"^\./")


def _truncate(text: str, limit: int) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


def _confidence_tier(confidence: float) -> str:
    if confidence >= 0.8:
        return "HIGH"
    if confidence >= 0.5:
        return "MEDIUM"
    return "LOW"


def _import_lines(context: RelevantContext) -> List[str]:
    """One import per module, names in ranking order."""
    by_path: Dict[str, List[str]] = {}
    for scored in context.components:
        component = scored.component
        import_path = _RELATIVE_PREFIX.sub("", _TS_SUFFIX.sub("", component.file_path))
        by_path.setdefault(import_path, []).append(component.name)
    return [
        f"import {{ {', '.join(names)} }} from './{path}';"
        for path, names in by_path.items()
    ]


def format_context_for_prompt(context: RelevantContext, journey: JourneyContext) -> str:
    """
    Markdown with three optional sections: components (table plus import
    example), lessons, and quirks. Always ends with a '---' line.
    """
    lines = [f"## LLKB Context (Auto-Injected for {journey.id})", ""]

    if context.components:
        lines.append(f"### Available Components (Top {len(context.components)} for this scope)")
        lines.append("")
        lines.append("| Component | File | Success Rate | Description |")
        lines.append("|-----------|------|--------------|-------------|")
        for scored in context.components:
            component = scored.component
            success_rate = math.floor(component.metrics.success_rate * 100 + 0.5)
            description = _truncate(component.description, DESCRIPTION_PREVIEW)
            lines.append(
                f"| {component.name} | {component.file_path} | {success_rate}% | {description} |"
            )
        lines.append("")
        lines.append("**Import Example:**")
        lines.append("```typescript")
        lines.extend(_import_lines(context))
        lines.append("```")
        lines.append("")

    if context.lessons:
        lines.append(f"### Relevant Lessons (Top {len(context.lessons)})")
        lines.append("")
        for i, scored in enumerate(context.lessons, start=1):
            lesson = scored.lesson
            tier = _confidence_tier(lesson.metrics.confidence)
            lines.append(f"{i}. **[{tier}] {lesson.id}: {lesson.title}**")
            lines.append(f"   - Trigger: {lesson.trigger}")
            lines.append(f"   - Pattern: `{_truncate(lesson.pattern, PATTERN_PREVIEW)}`")
            lines.append("")

    if context.quirks:
        lines.append("### Known Quirks for This Scope")
        lines.append("")
        for quirk in context.quirks:
            lines.append(f"- **{quirk.id} ({quirk.component})**: {quirk.quirk}")
            if quirk.workaround:
                lines.append(f"  - Workaround: {quirk.workaround}")
        lines.append("")

    lines.append("---")
    return "\n".join(lines)
