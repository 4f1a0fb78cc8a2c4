"""Lint rules and the engine that runs them."""

from flowlint.rules.base import HardcodedStringRule, NodeRule, Rule, RuleFunction
from flowlint.rules.engine import BUILTIN_RULES, run_all_rules
from flowlint.rules.metadata import RULES_METADATA, RuleMetadata, get_rule_meta

__all__ = [
    "BUILTIN_RULES",
    "HardcodedStringRule",
    "NodeRule",
    "RULES_METADATA",
    "Rule",
    "RuleFunction",
    "RuleMetadata",
    "get_rule_meta",
    "run_all_rules",
]
