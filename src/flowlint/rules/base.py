"""Base rule interface and the two reusable rule shapes.

A rule is anything callable as ``rule(graph, ctx) -> list[Finding]``. The
classes here add the common plumbing: the enabled check, metadata lookup,
and finding construction.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from functools import lru_cache
import re

from flowlint.config import DenylistConfig, RuleConfig
from flowlint.models.finding import Finding, RuleContext, Severity
from flowlint.models.graph import Graph, NodeRef
from flowlint.rules.metadata import get_rule_meta
from flowlint.utils.values import EXPRESSION_MARKER, collect_strings, to_regex

RuleFunction = Callable[[Graph, RuleContext], list[Finding]]
NodeCheck = Callable[[NodeRef, Graph, RuleContext, "Rule"], "Finding | list[Finding] | None"]
MessageFunction = Callable[[NodeRef, str], str]


class Rule:
    """Base class for all rules."""

    rule_id: str = ""
    config_key: str = ""

    def __init__(self, rule_id: str | None = None, config_key: str | None = None,
                 severity: Severity | None = None):
        if rule_id is not None:
            self.rule_id = rule_id
        if config_key is not None:
            self.config_key = config_key
        self._severity = severity

    @property
    def severity(self) -> Severity:
        if self._severity is not None:
            return self._severity
        return get_rule_meta(self.rule_id).severity

    def rule_config(self, ctx: RuleContext) -> RuleConfig | None:
        return ctx.config.rule(self.config_key)

    def is_enabled(self, ctx: RuleContext) -> bool:
        cfg = self.rule_config(ctx)
        return cfg is not None and bool(cfg.enabled)

    def evaluate(self, graph: Graph, ctx: RuleContext) -> list[Finding]:
        """Run the rule; disabled or unconfigured rules produce nothing."""
        if not self.is_enabled(ctx):
            return []
        return list(self.check(graph, ctx))

    def check(self, graph: Graph, ctx: RuleContext) -> Iterable[Finding]:
        raise NotImplementedError

    def __call__(self, graph: Graph, ctx: RuleContext) -> list[Finding]:
        return self.evaluate(graph, ctx)

    def finding(
        self,
        ctx: RuleContext,
        node_id: str | None,
        message: str,
        raw_details: str | None = None,
    ) -> Finding:
        return Finding(
            rule=self.rule_id,
            severity=self.severity,
            path=ctx.path,
            message=message,
            raw_details=raw_details,
            node_id=node_id,
            line=ctx.line_for(node_id) if node_id is not None else None,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.rule_id!r}, {self.config_key!r})"


class NodeRule(Rule):
    """Applies a check function to every node in declaration order.

    The check receives ``(node, graph, ctx, rule)`` and returns ``None``, one
    finding, or a list of findings.
    """

    def __init__(self, rule_id: str, config_key: str, check: NodeCheck,
                 severity: Severity | None = None):
        super().__init__(rule_id, config_key, severity)
        self._check = check

    def check(self, graph: Graph, ctx: RuleContext) -> Iterator[Finding]:
        for node in graph.nodes:
            result = self._check(node, graph, ctx, self)
            if result is None:
                continue
            if isinstance(result, Finding):
                yield result
            else:
                yield from result


@lru_cache(maxsize=64)
def _compile_denylist(patterns: tuple[str, ...]) -> tuple[re.Pattern[str], ...]:
    return tuple(to_regex(p) for p in patterns)


class HardcodedStringRule(NodeRule):
    """Flags literal strings in node parameters that match a denylist.

    Expressions (``{{ ... }}``) are computed at runtime and skipped. At most
    one finding is reported per node: the first matching string wins.
    """

    def __init__(self, rule_id: str, config_key: str, message_fn: MessageFunction, details: str,
                 severity: Severity | None = None):
        super().__init__(rule_id, config_key, self._check_node, severity)
        self.message_fn = message_fn
        self.details = details

    def denylist(self, ctx: RuleContext) -> tuple[re.Pattern[str], ...]:
        cfg = self.rule_config(ctx)
        if not isinstance(cfg, DenylistConfig) or not cfg.denylist_regex:
            return ()
        return _compile_denylist(tuple(cfg.denylist_regex))

    def _check_node(self, node: NodeRef, graph: Graph, ctx: RuleContext, rule: Rule) -> Finding | None:
        regexes = self.denylist(ctx)
        if not regexes:
            return None

        for value in collect_strings(node.params):
            if not value or EXPRESSION_MARKER in value:
                continue
            if any(regex.search(value) for regex in regexes):
                return self.finding(ctx, node.id, self.message_fn(node, value), self.details)
        return None
