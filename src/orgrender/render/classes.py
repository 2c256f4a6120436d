"""Default CSS class lists and user overrides."""

from collections.abc import Mapping

TODO_BADGE_BASE = "inline-flex items-center px-2 py-1 text-xs font-medium {color} rounded-full mr-2"
PRIORITY_BADGE_BASE = "inline-flex items-center px-2 py-1 text-xs font-medium {color} mr-2 border border-current rounded"

DEFAULT_CLASSES: dict[str, dict[str, str]] = {
    "todo_keywords": {
        "TODO": TODO_BADGE_BASE.format(color="bg-orange-100 text-orange-800"),
        "DONE": TODO_BADGE_BASE.format(color="bg-green-100 text-green-800"),
        "DOING": TODO_BADGE_BASE.format(color="bg-blue-100 text-blue-800"),
        "NEXT": TODO_BADGE_BASE.format(color="bg-purple-100 text-purple-800"),
        "WAITING": TODO_BADGE_BASE.format(color="bg-yellow-100 text-yellow-800"),
        "CANCELLED": TODO_BADGE_BASE.format(color="bg-gray-100 text-gray-800"),
        "CANCELED": TODO_BADGE_BASE.format(color="bg-gray-100 text-gray-800"),
    },
    "priorities": {
        "A": PRIORITY_BADGE_BASE.format(color="bg-red-100 text-red-800"),
        "B": PRIORITY_BADGE_BASE.format(color="bg-yellow-100 text-yellow-800"),
        "C": PRIORITY_BADGE_BASE.format(color="bg-green-100 text-green-800"),
    },
    "headers": {
        "1": "text-3xl font-bold text-gray-900 mb-4 mt-8 first:mt-0",
        "2": "text-2xl font-semibold text-gray-800 mb-3 mt-6",
        "3": "text-xl font-semibold text-gray-800 mb-3 mt-5",
        "4": "text-lg font-semibold text-gray-700 mb-2 mt-4",
        "5": "text-base font-semibold text-gray-700 mb-2 mt-3",
        "6": "text-sm font-semibold text-gray-700 mb-2 mt-3",
        "tag": "inline-flex items-center px-2 py-1 rounded-full text-xs font-medium bg-indigo-100 text-indigo-800 ml-2",
    },
    "timestamps": {
        "range": "inline-flex items-center gap-1 px-3 py-1 bg-blue-50 text-blue-700 border border-blue-200 rounded-lg text-sm font-medium",
        "active": "inline-flex items-center gap-1 px-2 py-1 bg-green-50 text-green-700 border border-green-200 rounded-md text-sm",
        "inactive": "inline-flex items-center gap-1 px-2 py-1 bg-gray-50 text-gray-600 border border-gray-200 rounded-md text-sm",
        "icon": "w-3 h-3",
        "range_icon": "w-3 h-3",
        "arrow_icon": "w-3 h-3 text-blue-500",
        "planning": "timestamps-display flex flex-wrap gap-2 mb-3",
        "planning_entry": "timestamp-entry inline-flex items-center space-x-2 px-3 py-1 rounded-md border text-sm font-medium",
        "planning_label": "font-mono text-xs",
        "deadline": "text-red-600 bg-red-50 border-red-200",
        "scheduled": "text-blue-600 bg-blue-50 border-blue-200",
        "closed": "text-green-600 bg-green-50 border-green-200",
        "overdue": "text-red-700 bg-red-50 px-2 py-1 rounded",
        "due_today": "text-orange-700 bg-orange-50 px-2 py-1 rounded",
        "due_soon": "text-orange-600",
        "scheduled_today": "text-blue-700 bg-blue-50 px-2 py-1 rounded",
        "scheduled_soon": "text-blue-600",
    },
    "elements": {
        "p": "text-gray-700 leading-relaxed mb-4",
        "ul": "list-disc list-inside mb-4 ml-4 space-y-1",
        "ol": "list-decimal list-inside mb-4 ml-4 space-y-1",
        "li": "text-gray-700",
        "checkbox": "mr-2",
        "code": "bg-gray-100 text-gray-800 px-1.5 py-0.5 rounded text-sm font-mono",
        "pre": "bg-gray-900 text-gray-100 p-4 rounded-lg overflow-x-auto mb-4 text-sm",
        "pre_highlight": "rounded-lg overflow-x-auto mb-4 text-sm border border-gray-200 shadow-sm p-4",
        "table": "min-w-full divide-y divide-gray-200 border",
        "thead": "bg-gray-50",
        "tbody": "bg-white divide-y divide-gray-200",
        "th": "px-6 py-3 text-left text-xs font-medium text-gray-500 uppercase tracking-wider",
        "td": "px-6 py-4 whitespace-nowrap text-sm text-gray-900",
        "a": "text-blue-600 hover:text-blue-800 underline",
        "strong": "font-semibold text-gray-900",
        "em": "italic",
        "del": "line-through text-gray-500",
        "hr": "border-gray-300 my-8",
        "error": "render-error bg-red-50 border border-red-200 text-red-700 px-4 py-3 rounded",
    },
    "footnotes": {
        "ref": "footnote-ref text-blue-600 bg-blue-50 px-1 rounded text-sm hover:bg-blue-100 cursor-pointer no-underline",
        "section": "footnotes mt-8 pt-6 border-t border-gray-200",
        "title": "text-sm text-gray-600 mb-4 font-semibold",
        "list": "space-y-3",
        "definition": "footnote-definition text-sm",
        "row": "flex items-start space-x-2",
        "label": "font-mono text-blue-600 bg-blue-50 px-1.5 py-0.5 rounded text-xs font-medium shrink-0",
        "content": "text-gray-700 leading-relaxed",
        "backlinks": "flex items-center space-x-1 shrink-0",
        "backlink": "text-blue-500 hover:text-blue-700 text-xs",
    },
    "logbook": {
        "container": "logbook-display bg-gradient-to-br from-slate-50 to-slate-100 rounded-xl shadow-lg border border-slate-200 p-4 mb-4",
        "header": "flex items-center justify-between mb-3",
        "title": "text-sm font-semibold text-slate-800",
        "stats": "text-sm text-slate-600",
        "list": "space-y-3",
        "state_entry": "logbook-entry bg-gradient-to-r from-slate-50 to-slate-100 border border-slate-200 rounded-lg shadow-sm p-3",
        "clock_entry": "logbook-entry bg-gradient-to-r from-orange-50 to-amber-50 border border-orange-200 rounded-lg shadow-sm p-3",
        "state": "px-2 py-1 rounded-md text-xs font-medium border",
        "state_TODO": "bg-yellow-100 text-yellow-800 border-yellow-200",
        "state_DONE": "bg-green-100 text-green-800 border-green-200",
        "state_CANCELLED": "bg-red-100 text-red-800 border-red-200",
        "state_WAITING": "bg-purple-100 text-purple-800 border-purple-200",
        "state_default": "bg-gray-100 text-gray-800 border-gray-200",
        "time": "text-xs text-slate-500 font-mono",
        "duration": "text-sm font-mono font-semibold text-orange-700 bg-orange-100 px-2 py-1 rounded-md",
        "ongoing": "inline-flex items-center px-2 py-1 text-xs font-medium bg-green-100 text-green-800 rounded-full",
        "note": "text-sm text-slate-700 bg-white/80 p-3 rounded-md border border-slate-200 mt-3",
    },
}

CATEGORIES = tuple(DEFAULT_CLASSES)

# Categories whose keys are fixed element slots; the others are keyed by
# user vocabulary (TODO keywords, priority tiers, logbook states)
CLOSED_CATEGORIES = ("headers", "timestamps", "elements", "footnotes")

# Keys that fall back to another key of the same category when missing
_FALLBACKS = {
    "todo_keywords": "TODO",
    "priorities": "A",
    "logbook": "state_default",
}


class ClassMap:
    """Look up the class attribute for an element, custom lists first."""

    def __init__(self, overrides: Mapping[str, Mapping[str, tuple[str, ...]]] | None = None):
        self._overrides = {
            category: {str(key): " ".join(classes) for key, classes in entries.items()}
            for category, entries in (overrides or {}).items()
        }

    def get(self, category: str, key: str | int) -> str:
        """
        Return the class string for `key` within `category`.

        A custom list replaces the default list for that key entirely.
        Unknown TODO keywords use the TODO style, unknown priority tiers the
        A style, unknown logbook states the neutral style.
        """
        key = str(key)
        custom = self._overrides.get(category, {})
        if key in custom:
            return custom[key]
        defaults = DEFAULT_CLASSES.get(category, {})
        if key in defaults:
            return defaults[key]
        fallback = _FALLBACKS.get(category)
        if fallback is not None and fallback != key:
            return self.get(category, fallback)
        return ""
