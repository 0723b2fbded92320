"""Journey context, journey steps, app profile and pattern libraries.

These are transient inputs supplied by the caller for one query; the engine
never stores them.
"""

from typing import List, Optional

from pydantic import Field

from llkb.models.base import DocumentModel
from llkb.models.lesson import LLKBCategory


class JourneyContext(DocumentModel):
    """What is currently being generated. Used to rank relevance."""

    id: str                                 # e.g., "JRN-0001"
    scope: str                              # Feature area, e.g., "orders"
    title: str
    routes: Optional[List[str]] = None
    keywords: Optional[List[str]] = None    # Derived from title/scope/routes if absent
    categories: Optional[List[LLKBCategory]] = None


class JourneyStep(DocumentModel):
    """A single step to match against the component catalog."""

    name: str
    description: Optional[str] = None
    keywords: Optional[List[str]] = None
    scope: Optional[str] = None
    code: Optional[str] = None


class AppProfile(DocumentModel):
    """The application under test, as detected by discovery."""

    framework: str = "other"                # "angular" | "react" | "vue" | ... | "other"
    data_grid: str = "none"                 # e.g., "ag-grid"
    ui_library: str = "none"                # e.g., "mui"; "custom" | "none" when absent


class SelectorPattern(DocumentModel):
    id: str
    name: str
    template: str
    confidence: float = Field(ge=0.0, le=1.0, default=0.0)
    applicable_to: List[str] = []


class TimingPattern(DocumentModel):
    id: str
    name: str
    pattern: str
    context: str = ""
    recommendation: str = ""


class PatternLibrary(DocumentModel):
    """Selector and timing patterns available for injection."""

    selector_patterns: List[SelectorPattern] = []
    timing_patterns: List[TimingPattern] = []
