"""
Category inference — static keyword and reusable-pattern tables.

The tables are plain data so they can be inspected, tested and extended
without touching the scoring code that consumes them.
"""

import re
from typing import Dict, List, NamedTuple, Optional, Pattern, Tuple

from llkb.models.lesson import LLKBCategory

CATEGORY_KEYWORDS: Dict[LLKBCategory, Tuple[str, ...]] = {
    LLKBCategory.NAVIGATION: (
        "goto", "navigate", "route", "url", "path", "sidebar", "menu",
        "breadcrumb", "nav", "link", "href", "router",
    ),
    LLKBCategory.AUTH: (
        "login", "logout", "auth", "password", "credential", "session",
        "token", "user", "signin", "signout", "authenticate", "authorization",
    ),
    LLKBCategory.ASSERTION: (
        "expect", "assert", "verify", "should", "tobevisible", "tohavetext",
        "tobehidden", "tocontain", "tohaveattribute", "tobeenabled",
        "tobedisabled", "tohavevalue",
    ),
    LLKBCategory.DATA: (
        "api", "fetch", "response", "request", "json", "payload", "data",
        "post", "get", "put", "delete", "endpoint", "graphql", "rest",
    ),
    LLKBCategory.SELECTOR: (
        "locator", "getby", "selector", "testid", "data-testid",
        "queryselector", "findby", "getbyrole", "getbylabel", "getbytext",
        "getbyplaceholder",
    ),
    LLKBCategory.TIMING: (
        "wait", "timeout", "delay", "sleep", "settimeout", "poll", "retry",
        "interval", "waitfor", "waituntil",
    ),
    LLKBCategory.UI_INTERACTION: (
        "click", "fill", "type", "select", "check", "uncheck", "upload",
        "drag", "drop", "hover", "focus", "blur", "press", "scroll",
        "dblclick",
    ),
}

# Distinctive categories first; ui-interaction is the fallback.
CATEGORY_PRIORITY: Tuple[LLKBCategory, ...] = (
    LLKBCategory.AUTH,
    LLKBCategory.NAVIGATION,
    LLKBCategory.ASSERTION,
    LLKBCategory.DATA,
    LLKBCategory.TIMING,
    LLKBCategory.SELECTOR,
    LLKBCategory.UI_INTERACTION,
)

DEFAULT_CATEGORY = LLKBCategory.UI_INTERACTION


class ReusablePattern(NamedTuple):
    name: str
    regex: Pattern
    category: LLKBCategory


# Common UI patterns that indicate a reusable component. First match wins.
REUSABLE_PATTERNS: Tuple[ReusablePattern, ...] = (
    ReusablePattern("navigation", re.compile(r"navigation|sidebar|menu|breadcrumb", re.I), LLKBCategory.NAVIGATION),
    ReusablePattern("form", re.compile(r"form|input|submit|validation", re.I), LLKBCategory.UI_INTERACTION),
    ReusablePattern("table", re.compile(r"table|grid|row|cell|column", re.I), LLKBCategory.DATA),
    ReusablePattern("modal", re.compile(r"modal|dialog|popup|overlay", re.I), LLKBCategory.UI_INTERACTION),
    ReusablePattern("notification", re.compile(r"toast|alert|notification|message", re.I), LLKBCategory.ASSERTION),
    ReusablePattern("auth", re.compile(r"login|auth|logout|session", re.I), LLKBCategory.AUTH),
    ReusablePattern("loading", re.compile(r"loading|spinner|skeleton|progress", re.I), LLKBCategory.TIMING),
    ReusablePattern("dropdown", re.compile(r"select|dropdown|picker|autocomplete", re.I), LLKBCategory.UI_INTERACTION),
    ReusablePattern("tabs", re.compile(r"tab|accordion|panel|collapse", re.I), LLKBCategory.UI_INTERACTION),
    ReusablePattern("search", re.compile(r"search|filter|sort|pagination", re.I), LLKBCategory.DATA),
)

# Action verbs looked for (as substrings) in step names and descriptions.
ACTION_KEYWORDS: Tuple[str, ...] = (
    "verify", "check", "assert", "expect", "navigate", "goto", "click",
    "fill", "type", "select", "wait", "load", "submit", "upload", "download",
    "hover", "drag", "drop", "scroll", "resize", "close", "open", "toggle",
    "expand", "collapse", "search", "filter", "sort", "create", "delete",
    "update", "edit", "save", "cancel", "confirm", "login", "logout",
    "authenticate",
)

UI_ELEMENT_WORDS: Tuple[str, ...] = (
    "button", "link", "input", "field", "table", "grid", "form", "modal",
    "dialog", "toast", "sidebar", "menu", "dropdown", "checkbox", "radio",
)

UI_ELEMENT_REGEX = re.compile(r"\b(" + "|".join(UI_ELEMENT_WORDS) + r")\b", re.I)


class CategoryInference(NamedTuple):
    category: LLKBCategory
    confidence: float
    match_count: int


def infer_category(code: str) -> LLKBCategory:
    """First category in priority order with a keyword present in the code."""
    code_lower = code.lower()
    for category in CATEGORY_PRIORITY:
        for keyword in CATEGORY_KEYWORDS[category]:
            if keyword in code_lower:
                return category
    return DEFAULT_CATEGORY


def infer_category_with_confidence(code: str) -> CategoryInference:
    """Category with the most keyword hits, with a confidence for the call."""
    code_lower = code.lower()
    best_category = DEFAULT_CATEGORY
    max_matches = 0
    for category, keywords in CATEGORY_KEYWORDS.items():
        count = sum(1 for keyword in keywords if keyword in code_lower)
        if count > max_matches:
            max_matches = count
            best_category = category

    total = len(CATEGORY_KEYWORDS[best_category])
    confidence = min(max_matches / min(total, 5), 1.0)
    return CategoryInference(
        category=best_category,
        confidence=round(confidence, 2),
        match_count=max_matches,
    )


def match_reusable_pattern(code: str) -> Optional[ReusablePattern]:
    """The first reusable UI pattern the code matches, if any."""
    for pattern in REUSABLE_PATTERNS:
        if pattern.regex.search(code):
            return pattern
    return None


def infer_component_category(code: str) -> LLKBCategory:
    """Pattern-table category if the code matches one, else the keyword classifier."""
    pattern = match_reusable_pattern(code)
    if pattern is not None:
        return pattern.category
    return infer_category(code)


def is_component_category(category: LLKBCategory) -> bool:
    return category != LLKBCategory.QUIRK


def get_all_categories() -> List[LLKBCategory]:
    return list(LLKBCategory)


def get_component_categories() -> List[LLKBCategory]:
    return [c for c in LLKBCategory if is_component_category(c)]
