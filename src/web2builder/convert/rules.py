"""Ordered predicate chains used by the structure classifier.

Each chain is evaluated top to bottom and the first matching rule wins.
Thresholds come from ``ClassifierThresholds`` so every rule can be tuned and
tested on its own.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum

from web2builder.config import ClassifierThresholds
from web2builder.models import ElementNode

LANDMARK_SECTION_TAGS = frozenset({"section", "header", "footer", "main", "article", "nav", "aside"})
COLUMN_CANDIDATE_TAGS = frozenset({"div", "article", "aside", "section"})
COLUMN_BREAK_LANDMARKS = frozenset({"section", "header", "footer", "main", "article", "aside"})
FLOW_DISPLAY_KEYWORDS = ("flex", "grid")


class NodeKind(str, Enum):
    SECTION = "section"
    COLUMN = "column"
    WIDGET = "widget"
    PASSTHROUGH = "passthrough"


class ParentKind(str, Enum):
    BODY = "body"
    SECTION = "section"
    COLUMN = "column"


NodePredicate = Callable[[ElementNode, ClassifierThresholds], bool]


@dataclass(frozen=True, slots=True)
class Rule:
    name: str
    parents: frozenset[ParentKind]
    predicate: NodePredicate
    kind: NodeKind

    def matches(self, node: ElementNode, parent: ParentKind, thresholds: ClassifierThresholds) -> bool:
        return parent in self.parents and self.predicate(node, thresholds)


def _is_landmark(node: ElementNode, _t: ClassifierThresholds) -> bool:
    return node.tag in LANDMARK_SECTION_TAGS


def _is_sizeable(node: ElementNode, t: ClassifierThresholds) -> bool:
    return node.style.height > t.section_min_height and node.style.width > t.section_min_width


def _has_many_children(node: ElementNode, t: ClassifierThresholds) -> bool:
    return len(node.children) > t.section_min_children


def _is_flow_div(node: ElementNode, _t: ClassifierThresholds) -> bool:
    return node.tag == "div" and node.style.is_flow_container


def _div_with_wide_children(node: ElementNode, t: ClassifierThresholds) -> bool:
    return node.tag == "div" and any(child.style.width > t.wide_child_min_width for child in node.children)


def _is_column_candidate(node: ElementNode, _t: ClassifierThresholds) -> bool:
    return bool(node.children) or node.has_content or node.tag in COLUMN_CANDIDATE_TAGS


def _always(_node: ElementNode, _t: ClassifierThresholds) -> bool:
    return True


def _is_leaf(node: ElementNode, _t: ClassifierThresholds) -> bool:
    return node.is_leaf


def _has_content(node: ElementNode, _t: ClassifierThresholds) -> bool:
    return node.has_content


_BODY = frozenset({ParentKind.BODY})
_SECTION = frozenset({ParentKind.SECTION})
_COLUMN = frozenset({ParentKind.COLUMN})
_ANY = frozenset(ParentKind)

CLASSIFICATION_RULES: tuple[Rule, ...] = (
    Rule("landmark_section", _BODY, _is_landmark, NodeKind.SECTION),
    Rule("sizeable_container", _BODY, _is_sizeable, NodeKind.SECTION),
    Rule("many_children", _BODY, _has_many_children, NodeKind.SECTION),
    Rule("flow_container_div", _BODY, _is_flow_div, NodeKind.SECTION),
    Rule("wide_children_div", _BODY, _div_with_wide_children, NodeKind.SECTION),
    Rule("column_candidate", _SECTION, _is_column_candidate, NodeKind.COLUMN),
    Rule("column_child_widget", _COLUMN, _always, NodeKind.WIDGET),
    Rule("leaf_widget", _ANY, _is_leaf, NodeKind.WIDGET),
    Rule("content_widget", _BODY, _has_content, NodeKind.WIDGET),
    Rule("passthrough", _BODY, _always, NodeKind.PASSTHROUGH),
)


@dataclass(frozen=True, slots=True)
class Classification:
    kind: NodeKind
    rule: str


def classify(
    node: ElementNode,
    parent: ParentKind,
    thresholds: ClassifierThresholds | None = None,
    rules: Sequence[Rule] = CLASSIFICATION_RULES,
) -> Classification:
    t = thresholds or ClassifierThresholds()
    for rule in rules:
        if rule.matches(node, parent, t):
            return Classification(rule.kind, rule.name)
    # Non-leaf under a section or column with no matching rule.
    return Classification(NodeKind.WIDGET, "fallback_widget")


@dataclass(slots=True)
class LayoutContext:
    """Facts about a section's children shared by the column-break rules."""

    average_width: float = 0.0
    has_flow_layout: bool = False
    row_flow_parent: bool = False
    thresholds: ClassifierThresholds = field(default_factory=ClassifierThresholds)

    @classmethod
    def analyze(
        cls, parent: ElementNode, children: Sequence[ElementNode], thresholds: ClassifierThresholds
    ) -> LayoutContext:
        total = sum(child.style.width for child in children)
        flow = parent.style.is_flow_container or any(
            any(keyword in child.style.display for keyword in FLOW_DISPLAY_KEYWORDS) for child in children
        )
        return cls(
            average_width=total / len(children) if children else 0.0,
            has_flow_layout=flow,
            row_flow_parent=parent.style.is_row_flow,
            thresholds=thresholds,
        )


BreakPredicate = Callable[[ElementNode, ElementNode, LayoutContext], bool]


@dataclass(frozen=True, slots=True)
class BreakRule:
    name: str
    predicate: BreakPredicate


def _positioned(child: ElementNode, _prev: ElementNode, _ctx: LayoutContext) -> bool:
    return child.style.position in {"absolute", "fixed"}


def _landmark_break(child: ElementNode, _prev: ElementNode, _ctx: LayoutContext) -> bool:
    return child.tag in COLUMN_BREAK_LANDMARKS


def _markedly_wider(child: ElementNode, _prev: ElementNode, ctx: LayoutContext) -> bool:
    return child.style.width > ctx.average_width * ctx.thresholds.column_wide_ratio


def _new_row(child: ElementNode, prev: ElementNode, ctx: LayoutContext) -> bool:
    return ctx.has_flow_layout and child.style.y > prev.style.bottom


def _side_by_side(child: ElementNode, prev: ElementNode, ctx: LayoutContext) -> bool:
    return ctx.row_flow_parent and child.style.x >= prev.style.right - 1


COLUMN_BREAK_RULES: tuple[BreakRule, ...] = (
    BreakRule("positioned", _positioned),
    BreakRule("landmark", _landmark_break),
    BreakRule("markedly_wider", _markedly_wider),
    BreakRule("new_row", _new_row),
    BreakRule("side_by_side", _side_by_side),
)


def column_break(
    child: ElementNode,
    previous: ElementNode | None,
    context: LayoutContext,
    rules: Sequence[BreakRule] = COLUMN_BREAK_RULES,
) -> str | None:
    """Name of the rule that starts a new column at ``child``, or None."""
    if previous is None:
        return None
    for rule in rules:
        if rule.predicate(child, previous, context):
            return rule.name
    return None
